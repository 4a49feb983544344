"""Fixtures for flux-reconcile tests."""

import asyncio
import io
from typing import Any

import pytest

from flux_reconcile.client import ResourceClient
from flux_reconcile.exceptions import ProbeError
from flux_reconcile.manifest import Kind, ResourceCoordinates, WatchTarget
from flux_reconcile.output import Printer


class FakeClient(ResourceClient):
    """A ResourceClient that serves documents from memory."""

    def __init__(self) -> None:
        self.resources: dict[tuple[ResourceCoordinates, str, str], dict[str, Any]] = {}
        self.events: list[dict[str, Any]] = []
        self.get_error: ProbeError | None = None
        self.get_delay = 0.0
        self.events_error: ProbeError | None = None
        self.get_calls: list[ResourceCoordinates] = []
        self.list_calls = 0
        self.closed = False

    def add(
        self,
        coords: ResourceCoordinates,
        target: WatchTarget,
        conditions: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Store a resource with the specified status conditions."""
        doc: dict[str, Any] = {
            "apiVersion": coords.api_version,
            "kind": str(target.kind),
            "metadata": {"name": target.name, "namespace": target.namespace},
        }
        if conditions is not None:
            doc["status"] = {"conditions": conditions}
        self.resources[(coords, target.namespace, target.name)] = doc
        return doc

    async def get_resource(
        self, coords: ResourceCoordinates, namespace: str, name: str
    ) -> dict[str, Any]:
        self.get_calls.append(coords)
        if self.get_delay:
            await asyncio.sleep(self.get_delay)
        if self.get_error is not None:
            raise self.get_error
        if (doc := self.resources.get((coords, namespace, name))) is None:
            raise ProbeError(f'{coords.plural}.{coords.group} "{name}" not found')
        return doc

    async def list_events(
        self, namespace: str, name: str, limit: int
    ) -> list[dict[str, Any]]:
        self.list_calls += 1
        if self.events_error is not None:
            raise self.events_error
        return list(self.events[-limit:])

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def client() -> FakeClient:
    """Fixture for an in memory resource client."""
    return FakeClient()


@pytest.fixture
def target() -> WatchTarget:
    """Fixture for the resource being reconciled."""
    return WatchTarget(kind=Kind.KUSTOMIZATION, name="app", namespace="flux-system")


@pytest.fixture
def output() -> io.StringIO:
    """Fixture capturing printed progress lines."""
    return io.StringIO()


@pytest.fixture
def printer(output: io.StringIO) -> Printer:
    """Fixture for a Printer writing to the captured output."""
    return Printer(file=output, no_color=True)
