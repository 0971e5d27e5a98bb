from __future__ import annotations

from typing import Any, Iterator, Protocol

from .api_models import Target, TargetList, Upstream

# Docker payloads are passed around as the decoded JSON dicts the Engine API returns.
ContainerSummary = dict[str, Any]
ContainerDetails = dict[str, Any]
DockerEvent = dict[str, Any]


class ContainerLister(Protocol):
    def list_running_containers(self) -> list[ContainerSummary]: ...


class ContainerInspector(Protocol):
    def inspect_container(self, container_id: str) -> ContainerDetails: ...


class EventSource(Protocol):
    def subscribe_events(self) -> Iterator[DockerEvent]: ...


class ContainerQuery(ContainerLister, ContainerInspector, Protocol):
    """What target resolution asks of the container runtime."""


class UpstreamReader(Protocol):
    def get_upstream(self, name: str) -> Upstream | None: ...

    def list_active_targets(self, upstream: str) -> TargetList: ...


class UpstreamWriter(Protocol):
    def create_upstream(self, name: str) -> None: ...

    def add_target(self, upstream: str, target: str, weight: int = 100) -> Target: ...

    def delete_target(self, upstream: str, target_id: str) -> None: ...


class Gateway(UpstreamReader, UpstreamWriter, Protocol):
    """Everything the daemon asks of the Kong admin API."""
