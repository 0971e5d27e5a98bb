from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from .docker_ops import DOCKER_ERRORS
from .logs import log_event
from .runtime import ContainerDetails, ContainerQuery, ContainerSummary
from .settings import settings

PORT_RE = re.compile(r"^[0-9]+")
LOOPBACK = "127.0.0.1"

UpstreamConfig = dict[str, list[str]]


@dataclass(frozen=True)
class ContainerRecord:
    id: str
    name: str
    running: bool
    labels: dict[str, str] = field(default_factory=dict)
    exposed_ports: tuple[str, ...] = ()
    ip_address: str = ""
    networks: dict[str, str] = field(default_factory=dict)  # network name -> ip
    network_mode: str = ""

    @classmethod
    def from_inspect(cls, details: ContainerDetails) -> "ContainerRecord":
        config = details.get("Config") or {}
        state = details.get("State") or {}
        net = details.get("NetworkSettings") or {}
        host = details.get("HostConfig") or {}
        networks = {
            name: (attrs or {}).get("IPAddress") or ""
            for name, attrs in (net.get("Networks") or {}).items()
        }
        return cls(
            id=details.get("Id", ""),
            name=(details.get("Name") or "").lstrip("/"),
            running=bool(state.get("Running", True)),
            labels=dict(config.get("Labels") or {}),
            exposed_ports=tuple(config.get("ExposedPorts") or {}),
            ip_address=net.get("IPAddress") or "",
            networks=networks,
            network_mode=host.get("NetworkMode") or "",
        )

    def port(self) -> str | None:
        """Port number of the first exposed port, in the order Docker lists them.

        Only the first one is used; containers exposing several ports are
        registered on that port alone.
        """
        for exposed in self.exposed_ports:
            m = PORT_RE.match(exposed)
            return m.group(0) if m else None
        return None

    def ip(self) -> str | None:
        if self.ip_address:
            return self.ip_address
        # Smallest network name wins so multi-network containers resolve the same way every pass.
        for name in sorted(self.networks):
            if self.networks[name]:
                return self.networks[name]
        if self.network_mode == "host":
            # TODO: resolve the real host IP instead of assuming a local Kong.
            return LOOPBACK
        return None


def resolve_container_target(record: ContainerRecord) -> str | None:
    """Turn a container into an ``ip:port`` target, or None if it cannot be routed."""
    port = record.port()
    if port is None:
        log_event("WARN", "no port exposed -> container ignored", container=record.id, container_name=record.name)
        return None
    ip = record.ip()
    if ip is None:
        log_event("WARN", "no IP address resolved -> container ignored", container=record.id, container_name=record.name, network_mode=record.network_mode)
        return None
    target = f"{ip}:{port}"
    log_event("DEBUG", "resolved container target", container=record.id, container_name=record.name, target=target)
    return target


def _is_running(summary: ContainerSummary) -> bool:
    return summary.get("State") == "running"


def resolve_desired_state(runtime: ContainerQuery, upstream: str = "", label: str | None = None) -> UpstreamConfig:
    """Map upstream name -> targets of the running containers labeled with it.

    ``upstream`` restricts the result to one upstream ("" means all of them).
    Errors listing containers propagate; an inspect failure only skips that container.
    """
    label = label or settings.upstream_label
    config: UpstreamConfig = {}

    for summary in runtime.list_running_containers():
        labels: dict[str, Any] = summary.get("Labels") or {}
        name = labels.get(label)
        if name is None or not _is_running(summary):
            continue
        if upstream and name != upstream:
            continue

        container_id = summary.get("Id", "")
        try:
            details = runtime.inspect_container(container_id)
        except DOCKER_ERRORS as e:
            log_event("ERROR", "unable to get container details", exc=e, container=container_id)
            continue

        record = ContainerRecord.from_inspect(details)
        if not record.running:
            log_event("DEBUG", "container stopped before inspection -> container ignored", container=container_id)
            continue
        target = resolve_container_target(record)
        if target is None:
            continue
        config.setdefault(name, []).append(target)

    return config
