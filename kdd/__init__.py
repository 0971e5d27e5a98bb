"""Kong Docker Daemon (KDD).

Single-host daemon that keeps Kong upstream targets in sync with running
Docker containers:
 - containers labeled ``kong.upstream=<name>`` are registered as targets
 - targets whose container is gone are unregistered
 - Docker ``start``/``die`` events trigger a full resynchronization

Docker and Kong are reached through narrow injected clients, so every piece
of the synchronization logic can be exercised against in-memory fakes.
"""

__version__ = "0.1.0"
