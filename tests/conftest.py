import itertools
import os
import sys

import pytest
from docker.errors import NotFound

# Ensure project root is importable (so `import kdd` and `import cli` work without installing)
_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from kdd.api_models import Target, TargetList, Upstream
from kdd.errors import GatewayAPIError
from kdd.settings import Settings


def container(cid, upstream=None, ip="", port="80/tcp", networks=None, network_mode="default", state="running", label="kong.upstream"):
    """Build a (summary, inspect) pair shaped like Docker Engine payloads."""
    labels = {label: upstream} if upstream is not None else {}
    summary = {"Id": cid, "Labels": labels, "State": state}
    details = {
        "Id": cid,
        "Name": f"/{cid}",
        "State": {"Running": state == "running", "Status": state},
        "Config": {
            "Labels": labels,
            "ExposedPorts": {port: {}} if port else None,
        },
        "NetworkSettings": {
            "IPAddress": ip,
            "Networks": {name: {"IPAddress": addr} for name, addr in (networks or {}).items()},
        },
        "HostConfig": {"NetworkMode": network_mode},
    }
    return summary, details


class FakeDocker:
    """In-memory stand-in for DockerRuntime."""

    def __init__(self, *containers, events=None):
        self.summaries = []
        self.details = {}
        self.streams = list(events or [])
        self.list_calls = 0
        self.closed = False
        for summary, details in containers:
            self.add(summary, details)

    def add(self, summary, details):
        self.summaries.append(summary)
        self.details[summary["Id"]] = details

    def remove(self, cid):
        self.summaries = [s for s in self.summaries if s["Id"] != cid]
        self.details.pop(cid, None)

    def version(self):
        return {"Version": "24.0.7", "ApiVersion": "1.43"}

    def list_running_containers(self):
        self.list_calls += 1
        return [s for s in self.summaries if s.get("State") == "running"]

    def inspect_container(self, container_id):
        if container_id not in self.details:
            raise NotFound(f"No such container: {container_id}")
        return self.details[container_id]

    def subscribe_events(self):
        if not self.streams:
            return iter(())
        stream = self.streams.pop(0)
        if isinstance(stream, Exception):
            raise stream
        return iter(stream)

    def close(self):
        self.closed = True


class FakeKong:
    """In-memory stand-in for KongClient recording every mutation."""

    def __init__(self, targets=None):
        self._ids = itertools.count(1)
        self.upstreams = {}
        self.calls = []
        self.failing = {}  # upstream -> method name that raises
        for name, addresses in (targets or {}).items():
            self.upstreams[name] = [self._target(name, a) for a in addresses]

    def _target(self, upstream, address):
        return Target(id=f"t{next(self._ids)}", target=address, weight=100, upstream_id=f"u-{upstream}")

    def _maybe_fail(self, method, upstream):
        if self.failing.get(upstream) == method:
            raise GatewayAPIError("500 Internal Server Error", status_code=500)

    def node_information(self):
        return type("Info", (), {"version": "3.4.0"})()

    def get_upstream(self, name):
        self._maybe_fail("get_upstream", name)
        if name not in self.upstreams:
            return None
        return Upstream(id=f"u-{name}", name=name)

    def create_upstream(self, name):
        self._maybe_fail("create_upstream", name)
        self.calls.append(("create_upstream", name))
        self.upstreams[name] = []

    def list_active_targets(self, upstream):
        self._maybe_fail("list_active_targets", upstream)
        data = list(self.upstreams.get(upstream, []))
        return TargetList(total=len(data), data=data)

    def add_target(self, upstream, target, weight=100):
        self._maybe_fail("add_target", upstream)
        self.calls.append(("add_target", upstream, target, weight))
        tgt = self._target(upstream, target)
        self.upstreams.setdefault(upstream, []).append(tgt)
        return tgt

    def delete_target(self, upstream, target_id):
        self._maybe_fail("delete_target", upstream)
        self.calls.append(("delete_target", upstream, target_id))
        self.upstreams[upstream] = [t for t in self.upstreams.get(upstream, []) if t.id != target_id]

    def addresses(self, upstream):
        return [t.target for t in self.upstreams.get(upstream, [])]

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


@pytest.fixture
def settings():
    return Settings(
        kong_admin_url="http://kong:8001",
        gateway_timeout_s=5,
        target_weight=100,
        upstream_label="kong.upstream",
        log_level="debug",
        log_json=False,
    )


@pytest.fixture
def kong():
    return FakeKong()



@pytest.fixture(autouse=True)
def reset_kdd_logger():
    """setup_logging() detaches the kdd logger from root; undo it so caplog sees records."""
    yield
    import logging

    log = logging.getLogger("kdd")
    log.handlers = []
    log.propagate = True
    log.setLevel(logging.NOTSET)
