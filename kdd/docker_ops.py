from __future__ import annotations

from typing import Any, Iterator

import docker
from docker.errors import DockerException
from requests.exceptions import RequestException

from .runtime import ContainerDetails, ContainerSummary, DockerEvent


# The SDK lets transport failures (socket gone, connection aborted) surface as requests errors.
DOCKER_ERRORS = (DockerException, RequestException)


class DockerRuntime:
    """Container runtime adapter over the Docker Engine API.

    Uses the low-level API client so callers get the raw Engine payloads
    (``Labels``, ``State``, ``Config.ExposedPorts``, ``NetworkSettings``...).
    """

    def __init__(self, client: docker.DockerClient | None = None):
        self._client = client or docker.from_env()

    @property
    def api(self) -> docker.APIClient:
        return self._client.api

    def version(self) -> dict[str, Any]:
        return self._client.version()

    def list_running_containers(self) -> list[ContainerSummary]:
        # Without all=True the Engine only reports running containers.
        return self.api.containers()

    def inspect_container(self, container_id: str) -> ContainerDetails:
        return self.api.inspect_container(container_id)

    def subscribe_events(self) -> Iterator[DockerEvent]:
        return self._client.events(decode=True)

    def close(self) -> None:
        self._client.close()
