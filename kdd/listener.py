from __future__ import annotations

import time
from typing import Iterator

from .docker_ops import DOCKER_ERRORS
from .errors import EventStreamError, GatewayAPIError
from .logs import log_event
from .orphans import cleanup_orphan_upstream
from .reconciler import Reconciler
from .runtime import DockerEvent, EventSource

TRIGGER_ACTIONS = frozenset({"start", "die"})


def event_upstream(event: DockerEvent, label: str) -> str | None:
    actor = event.get("Actor") or {}
    return (actor.get("Attributes") or {}).get(label)


def should_process_event(event: DockerEvent, label: str) -> bool:
    """Only labeled containers starting or dying can change upstream targets."""
    if event.get("Type") != "container" or event.get("Action") not in TRIGGER_ACTIONS:
        return False
    return event_upstream(event, label) is not None


class EventListener:
    """Consumes Docker events one at a time and resynchronizes Kong on each relevant one."""

    def __init__(self, events: EventSource, reconciler: Reconciler, label: str | None = None, resubscribe_delay_s: float = 1.0):
        self.events = events
        self.reconciler = reconciler
        self.label = label or reconciler.settings.upstream_label
        self.resubscribe_delay_s = max(0.0, float(resubscribe_delay_s))
        self._stop = False

    def stop(self) -> None:
        self._stop = True

    def run(self) -> None:
        """Block until ``stop()`` is called.

        A stream that ends cleanly is subscribed to again after a short pause;
        any other stream failure is raised as ``EventStreamError``. Failures
        while handling an event never end the loop.
        """
        log_event("INFO", "listening to Docker events", label=self.label)
        while not self._stop:
            stream = self._subscribe()
            while not self._stop:
                event = self._next_event(stream)
                if event is None or self._stop:
                    break
                self.handle_event(event)
            if not self._stop:
                log_event("DEBUG", "Docker event stream closed: subscribing again", delay_s=self.resubscribe_delay_s)
                time.sleep(self.resubscribe_delay_s)

    def _subscribe(self) -> Iterator[DockerEvent]:
        try:
            return iter(self.events.subscribe_events())
        except (*DOCKER_ERRORS, OSError) as e:
            raise EventStreamError(f"Docker event stream failed: {type(e).__name__}: {e}") from e

    @staticmethod
    def _next_event(stream: Iterator[DockerEvent]) -> DockerEvent | None:
        try:
            return next(stream)
        except StopIteration:
            return None
        except (*DOCKER_ERRORS, OSError) as e:
            raise EventStreamError(f"Docker event stream failed: {type(e).__name__}: {e}") from e

    def handle_event(self, event: DockerEvent) -> bool:
        """Reconcile if the event is relevant. Returns whether a pass was triggered."""
        if not should_process_event(event, self.label):
            return False

        upstream = event_upstream(event, self.label)
        action = event.get("Action")
        log_event("DEBUG", "container event received", action=action, upstream=upstream, container=(event.get("Actor") or {}).get("ID", ""))
        try:
            self.reconciler.synchronize()
        except DOCKER_ERRORS as e:
            log_event("ERROR", "upstream synchronization error", exc=e, upstream=upstream)
            return True

        if action == "die":
            try:
                cleanup_orphan_upstream(self.reconciler.runtime, self.reconciler.gateway, upstream, label=self.label)
            except (*DOCKER_ERRORS, GatewayAPIError):
                # Already logged with its context by the cleaner.
                pass
        return True
