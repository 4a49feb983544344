"""Read-only access to flux resources and events in the cluster."""

from abc import ABC, abstractmethod
from enum import Enum
import logging
from typing import Any

import aiohttp
from kubernetes_asyncio import client as k8s_client
from kubernetes_asyncio import config as k8s_config
from kubernetes_asyncio.client.exceptions import ApiException

from .exceptions import ClientException, FluxReconcileException, ProbeError
from .manifest import ResourceCoordinates

__all__ = [
    "ResourceClient",
    "KubernetesClient",
    "ProbeResult",
    "load_client",
]

_LOGGER = logging.getLogger(__name__)


class ProbeResult(Enum):
    """Outcome of checking whether a resource can be read."""

    FOUND = "found"
    ABSENT = "absent"


class ResourceClient(ABC):
    """Interface for reading resources and events from the API server."""

    @abstractmethod
    async def get_resource(
        self, coords: ResourceCoordinates, namespace: str, name: str
    ) -> dict[str, Any]:
        """Return the resource document, raising ProbeError on failure."""

    @abstractmethod
    async def list_events(
        self, namespace: str, name: str, limit: int
    ) -> list[dict[str, Any]]:
        """Return events for the named object, raising ProbeError on failure."""

    async def probe(
        self, coords: ResourceCoordinates, namespace: str, name: str
    ) -> ProbeResult:
        """Check if the resource can be read at the given coordinates.

        Any failure is reported as absent rather than raised.
        """
        try:
            await self.get_resource(coords, namespace, name)
        except FluxReconcileException as err:
            _LOGGER.debug("Probe of %s %s/%s failed: %s", coords, namespace, name, err)
            return ProbeResult.ABSENT
        return ProbeResult.FOUND

    async def close(self) -> None:
        """Release any connections held by the client."""


def _api_error(err: Exception) -> str:
    if not isinstance(err, ApiException):
        return str(err) or type(err).__name__
    if err.reason:
        return f"{err.status} {err.reason}"
    return str(err.status)


class KubernetesClient(ResourceClient):
    """A ResourceClient backed by kubernetes-asyncio."""

    def __init__(self, api_client: k8s_client.ApiClient) -> None:
        """Initialize KubernetesClient."""
        self._api_client = api_client
        self._custom = k8s_client.CustomObjectsApi(api_client)
        self._core = k8s_client.CoreV1Api(api_client)

    async def get_resource(
        self, coords: ResourceCoordinates, namespace: str, name: str
    ) -> dict[str, Any]:
        try:
            return await self._custom.get_namespaced_custom_object(  # type: ignore[no-any-return]
                coords.group, coords.version, namespace, coords.plural, name
            )
        except (ApiException, aiohttp.ClientError, TimeoutError) as err:
            raise ProbeError(
                f"{coords.plural}.{coords.group} \"{name}\": {_api_error(err)}"
            ) from err

    async def list_events(
        self, namespace: str, name: str, limit: int
    ) -> list[dict[str, Any]]:
        field_selector = ",".join(
            [
                f"involvedObject.name={name}",
                f"involvedObject.namespace={namespace}",
            ]
        )
        try:
            result = await self._core.list_namespaced_event(
                namespace, field_selector=field_selector, limit=limit
            )
        except (ApiException, aiohttp.ClientError, TimeoutError) as err:
            raise ProbeError(f"events for {namespace}/{name}: {_api_error(err)}") from err
        return [
            {"reason": event.reason, "type": event.type, "message": event.message}
            for event in result.items
        ]

    async def close(self) -> None:
        await self._api_client.close()


async def load_client(kubeconfig: str | None = None) -> KubernetesClient:
    """Create a client from the in-cluster service account or a kubeconfig."""
    try:
        try:
            k8s_config.load_incluster_config()
            _LOGGER.debug("Using in-cluster service account")
        except k8s_config.ConfigException:
            await k8s_config.load_kube_config(config_file=kubeconfig)
            _LOGGER.debug("Using kubeconfig %s", kubeconfig or "(default)")
    except (k8s_config.ConfigException, OSError) as err:
        raise ClientException(f"failed to get kubeconfig: {err}") from err
    return KubernetesClient(k8s_client.ApiClient())
