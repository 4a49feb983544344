"""Representation of the flux resources being reconciled.

These objects identify the resource to watch and hold the parts of its
status that are read back from the cluster while waiting. Only the fields
needed to decide readiness are parsed; the rest of the document is ignored.
"""

from dataclasses import dataclass
from enum import StrEnum
import logging
from typing import Any

from mashumaro import DataClassDictMixin
from mashumaro.config import BaseConfig

from .exceptions import InputException

__all__ = [
    "Kind",
    "WatchTarget",
    "ResourceCoordinates",
    "Condition",
    "EventRecord",
]

_LOGGER = logging.getLogger(__name__)


FLUXTOMIZE_DOMAIN = "kustomize.toolkit.fluxcd.io"
HELM_RELEASE_DOMAIN = "helm.toolkit.fluxcd.io"
SOURCE_DOMAIN = "source.toolkit.fluxcd.io"
DEFAULT_NAMESPACE = "flux-system"

READY_CONDITION = "Ready"
CONDITION_TRUE = "True"
CONDITION_FALSE = "False"
EVENT_TYPE_WARNING = "Warning"

SOURCE_TYPE_GIT = "git"
SOURCE_TYPE_OCI = "oci"
SOURCE_TYPES = [SOURCE_TYPE_GIT, SOURCE_TYPE_OCI]

KIND_KUSTOMIZATION = "kustomization"
KIND_HELM_RELEASE = "helmrelease"
KIND_SOURCE = "source"
KINDS = [KIND_KUSTOMIZATION, KIND_HELM_RELEASE, KIND_SOURCE]


class Kind(StrEnum):
    """Kind of flux resource that may be reconciled."""

    KUSTOMIZATION = "Kustomization"
    HELM_RELEASE = "HelmRelease"
    GIT_SOURCE = "GitRepository"
    OCI_SOURCE = "OCIRepository"

    @classmethod
    def from_args(cls, kind: str, source_type: str = SOURCE_TYPE_GIT) -> "Kind":
        """Return the kind for the command line kind and source type."""
        if kind == KIND_KUSTOMIZATION:
            return cls.KUSTOMIZATION
        if kind == KIND_HELM_RELEASE:
            return cls.HELM_RELEASE
        if kind == KIND_SOURCE:
            if source_type == SOURCE_TYPE_GIT:
                return cls.GIT_SOURCE
            if source_type == SOURCE_TYPE_OCI:
                return cls.OCI_SOURCE
            raise InputException(
                f"invalid source-type '{source_type}'. Valid types: "
                + ", ".join(SOURCE_TYPES)
            )
        raise InputException(
            f"invalid kind '{kind}'. Valid kinds: " + ", ".join(KINDS)
        )

    @property
    def cli_name(self) -> str:
        """The name of the kind as accepted by the flux command line."""
        if self in (Kind.GIT_SOURCE, Kind.OCI_SOURCE):
            return KIND_SOURCE
        return self.value.lower()

    @property
    def source_type(self) -> str | None:
        """The flux source type for source kinds."""
        if self == Kind.GIT_SOURCE:
            return SOURCE_TYPE_GIT
        if self == Kind.OCI_SOURCE:
            return SOURCE_TYPE_OCI
        return None


@dataclass(frozen=True)
class WatchTarget:
    """Identifier for the flux resource being reconciled."""

    kind: Kind
    name: str
    namespace: str = DEFAULT_NAMESPACE

    def __str__(self) -> str:
        """Return the kind and namespaced name concatenated as an id."""
        return f"{self.kind}/{self.namespace}/{self.name}"


@dataclass(frozen=True)
class ResourceCoordinates:
    """The API group, version and plural resource name for a kind."""

    group: str
    version: str
    plural: str

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}"

    def __str__(self) -> str:
        return f"{self.plural}.{self.api_version}"


@dataclass
class BaseStatusObject(DataClassDictMixin):
    """Base class for objects parsed from a resource status."""

    class Config(BaseConfig):
        omit_none = True


@dataclass
class Condition(BaseStatusObject):
    """A single entry of the status conditions of a resource."""

    type: str = ""
    """The type of condition e.g. Ready."""

    status: str = ""
    """One of True, False or Unknown."""

    reason: str = ""
    """Machine readable reason for the last transition."""

    message: str = ""
    """Human readable message about the last transition."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "Condition":
        """Parse a condition from a status document entry."""
        return cls.from_dict(
            {k: v for k, v in doc.items() if isinstance(v, str)},
        )

    @property
    def is_ready(self) -> bool:
        """Return True if this is a Ready condition with a True status."""
        return self.type == READY_CONDITION and self.status == CONDITION_TRUE


def parse_conditions(doc: dict[str, Any]) -> list[Condition] | None:
    """Return the status conditions of a resource document.

    Returns None when the document has no status or no conditions, which is
    expected for a resource that was just created.
    """
    if not isinstance(status := doc.get("status"), dict):
        return None
    if not isinstance(conditions := status.get("conditions"), list):
        return None
    return [
        Condition.parse_doc(cond) for cond in conditions if isinstance(cond, dict)
    ]


@dataclass
class EventRecord(BaseStatusObject):
    """A kubernetes lifecycle event about the watched resource."""

    reason: str = ""
    type: str = ""
    message: str = ""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "EventRecord":
        """Parse an event from a kubernetes Event document."""
        return cls(
            reason=doc.get("reason") or "",
            type=doc.get("type") or "",
            message=doc.get("message") or "",
        )

    @property
    def fingerprint(self) -> str:
        """Content used to detect changes between polls."""
        return f"{self.reason}:{self.type}:{self.message}"
