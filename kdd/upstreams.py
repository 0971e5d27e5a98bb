from __future__ import annotations

from dataclasses import dataclass, field

from .api_models import Target
from .logs import log_event
from .runtime import Gateway


@dataclass(frozen=True)
class UpstreamState:
    """Active targets Kong reports for one upstream.

    Only the addresses take part in diffing; the full ``Target`` records are
    kept so stale addresses can be deleted by id.
    """

    name: str
    targets: list[Target] = field(default_factory=list)

    @property
    def addresses(self) -> list[str]:
        return [t.target for t in self.targets]

    def ids_for(self, address: str) -> list[str]:
        return [t.id for t in self.targets if t.target == address]

    def as_config(self) -> dict[str, list[str]]:
        return {self.name: self.addresses}


def resolve_actual_state(gateway: Gateway, name: str) -> UpstreamState:
    """Fetch an upstream's active targets, creating the upstream if Kong lacks it."""
    if gateway.get_upstream(name) is None:
        log_event("DEBUG", "upstream not found in Kong: creating...", upstream=name)
        gateway.create_upstream(name)
        log_event("INFO", "upstream created in Kong", upstream=name)

    listing = gateway.list_active_targets(name)
    return UpstreamState(name=name, targets=list(listing.data))
