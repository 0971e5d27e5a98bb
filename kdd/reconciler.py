from __future__ import annotations

from dataclasses import dataclass, field

from .errors import GatewayAPIError
from .logs import log_event
from .runtime import ContainerQuery, Gateway
from .settings import Settings, settings as default_settings
from .targets import UpstreamConfig, resolve_desired_state
from .toolkit import diff
from .upstreams import UpstreamState, resolve_actual_state


@dataclass
class SyncResult:
    upstream: str
    created: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    error: GatewayAPIError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Reconciler:
    """Makes Kong upstream targets match the running labeled containers."""

    def __init__(self, runtime: ContainerQuery, gateway: Gateway, settings: Settings | None = None):
        self.runtime = runtime
        self.gateway = gateway
        self.settings = settings or default_settings

    def desired_state(self, upstream: str = "") -> UpstreamConfig:
        return resolve_desired_state(self.runtime, upstream, label=self.settings.upstream_label)

    def synchronize(self) -> dict[str, SyncResult]:
        """Run one full pass over every upstream that has labeled containers.

        Docker errors while listing containers propagate. Kong errors are
        confined to the upstream they happened on.
        """
        docker_upstreams = self.desired_state()
        log_event("DEBUG", "docker upstream configuration", config=docker_upstreams)

        results: dict[str, SyncResult] = {}
        for upstream, docker_targets in docker_upstreams.items():
            results[upstream] = self._sync_upstream(upstream, docker_targets)
        return results

    def _sync_upstream(self, upstream: str, docker_targets: list[str]) -> SyncResult:
        result = SyncResult(upstream=upstream)
        try:
            kong_state = resolve_actual_state(self.gateway, upstream)
        except GatewayAPIError as e:
            log_event("ERROR", "unable to synchronize upstream configuration", exc=e, upstream=upstream)
            result.error = e
            return result
        log_event("DEBUG", "kong upstream configuration", config=kong_state.as_config())

        kong_targets = kong_state.addresses
        to_remove = diff(kong_targets, docker_targets)
        to_create = diff(docker_targets, kong_targets)

        # Removals go first so a recycled address is free before it is registered again.
        try:
            self._unregister_targets(kong_state, to_remove, result)
        except GatewayAPIError as e:
            log_event("ERROR", "unable to unregister upstream targets from Kong", exc=e, upstream=upstream, targets=to_remove)
            result.error = e
            return result

        try:
            self._register_targets(upstream, to_create, result)
        except GatewayAPIError as e:
            log_event("ERROR", "unable to register new upstream targets", exc=e, upstream=upstream, targets=to_create)
            result.error = e
            return result

        log_event("INFO", "upstream configuration synchronized", upstream=upstream, created=result.created, removed=result.removed)
        return result

    def _unregister_targets(self, kong_state: UpstreamState, targets: list[str], result: SyncResult) -> None:
        upstream = kong_state.name
        log_event("DEBUG", "un-registering upstream targets...", upstream=upstream, targets=targets)
        deleted: set[str] = set()
        for target in targets:
            for target_id in kong_state.ids_for(target):
                if target_id in deleted:
                    continue
                self.gateway.delete_target(upstream, target_id)
                deleted.add(target_id)
            result.removed.append(target)
            log_event("DEBUG", "upstream target un-registered", upstream=upstream, target=target)

    def _register_targets(self, upstream: str, targets: list[str], result: SyncResult) -> None:
        log_event("DEBUG", "registering upstream targets...", upstream=upstream, targets=targets)
        for target in targets:
            tgt = self.gateway.add_target(upstream, target, self.settings.target_weight)
            result.created.append(target)
            log_event("DEBUG", "upstream target registered", id=tgt.id, target=tgt.target, upstream=upstream, upstream_id=tgt.upstream_id)
