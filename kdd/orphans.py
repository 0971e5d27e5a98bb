from __future__ import annotations

from .docker_ops import DOCKER_ERRORS
from .errors import GatewayAPIError
from .logs import log_event
from .runtime import ContainerQuery, Gateway
from .targets import resolve_desired_state


def cleanup_orphan_upstream(runtime: ContainerQuery, gateway: Gateway, upstream: str, label: str | None = None) -> str | None:
    """Drop the last target of an upstream no running container backs anymore.

    Only the single-target case is handled: an upstream left with several
    active targets is not touched. Returns the removed address, if any.
    """
    try:
        docker_upstreams = resolve_desired_state(runtime, upstream, label=label)
    except DOCKER_ERRORS as e:
        log_event("ERROR", "unable to clean orphan upstream", exc=e, upstream=upstream)
        raise
    if docker_upstreams.get(upstream):
        # Still backed by a container: not an orphan.
        return None

    try:
        result = gateway.list_active_targets(upstream)
    except GatewayAPIError as e:
        log_event("ERROR", "unable to clean orphan upstream", exc=e, upstream=upstream)
        raise
    if len(result.data) != 1:
        return None

    stray = result.data[0]
    log_event("INFO", "upstream is an orphan: cleaning...", upstream=upstream, removing=stray.target)
    try:
        gateway.delete_target(upstream, stray.id)
    except GatewayAPIError as e:
        log_event("ERROR", "unable to clean orphan upstream", exc=e, upstream=upstream, removing=stray.target)
        raise
    log_event("INFO", "upstream was an orphan: cleaned", upstream=upstream, removed=stray.target)
    return stray.target
