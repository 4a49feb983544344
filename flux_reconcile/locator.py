"""Map a flux resource kind to the API coordinates used to read it."""

import logging

from .client import ProbeResult, ResourceClient
from .exceptions import UnsupportedKindError
from .manifest import (
    FLUXTOMIZE_DOMAIN,
    HELM_RELEASE_DOMAIN,
    SOURCE_DOMAIN,
    Kind,
    ResourceCoordinates,
    WatchTarget,
)

__all__ = [
    "resolve",
]

_LOGGER = logging.getLogger(__name__)

KUSTOMIZATION = ResourceCoordinates(FLUXTOMIZE_DOMAIN, "v1", "kustomizations")
HELM_RELEASE = ResourceCoordinates(HELM_RELEASE_DOMAIN, "v2", "helmreleases")
HELM_RELEASE_LEGACY = ResourceCoordinates(HELM_RELEASE_DOMAIN, "v2beta1", "helmreleases")
GIT_REPOSITORY = ResourceCoordinates(SOURCE_DOMAIN, "v1", "gitrepositories")
OCI_REPOSITORY = ResourceCoordinates(SOURCE_DOMAIN, "v1beta2", "ocirepositories")

FIXED_COORDINATES = {
    Kind.KUSTOMIZATION: KUSTOMIZATION,
    Kind.GIT_SOURCE: GIT_REPOSITORY,
    Kind.OCI_SOURCE: OCI_REPOSITORY,
}


async def resolve(client: ResourceClient, target: WatchTarget) -> ResourceCoordinates:
    """Return the coordinates for the target resource.

    A HelmRelease is looked up with the current API version first and falls back
    to the legacy version if it cannot be read there, since older clusters do
    not serve the current version.
    """
    if coords := FIXED_COORDINATES.get(target.kind):
        return coords
    if target.kind != Kind.HELM_RELEASE:
        raise UnsupportedKindError(str(target.kind))

    result = await client.probe(HELM_RELEASE, target.namespace, target.name)
    if result == ProbeResult.FOUND:
        coords = HELM_RELEASE
    else:
        coords = HELM_RELEASE_LEGACY
    _LOGGER.debug("Resolved %s to %s (%s)", target, coords, result.value)
    return coords
