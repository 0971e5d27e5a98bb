from __future__ import annotations

from typing import Any, TypeVar
from urllib.parse import quote, urlparse

import httpx
from pydantic import BaseModel, ValidationError

from .api_models import NodeInformation, Target, TargetList, TargetRequest, Upstream, UpstreamRequest
from .errors import DecodeError, GatewayAPIError
from .logs import log_event

M = TypeVar("M", bound=BaseModel)


def validate_admin_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"Invalid Kong API endpoint {url!r}: expected http(s)://host[:port]")
    return url.rstrip("/")


def _segment(value: str) -> str:
    return quote(value, safe="")


class KongClient:
    """Thin client for the parts of the Kong admin API the daemon needs.

    Every non-2xx answer becomes a ``GatewayAPIError`` carrying the status
    text, except the 404s that mean "absent" (upstream lookup, target delete).
    """

    def __init__(self, base_url: str, timeout_s: float = 10.0, transport: httpx.BaseTransport | None = None):
        self.base_url = validate_admin_url(base_url)
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=timeout_s,
            follow_redirects=False,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        log_event("DEBUG", "Kong client configuration", endpoint=self.base_url)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "KongClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> httpx.Response:
        try:
            return self._http.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise GatewayAPIError(f"{method} {path}: {type(e).__name__}: {e}") from e

    @staticmethod
    def _raise_for_status(resp: httpx.Response) -> None:
        if resp.status_code >= 400:
            reason = resp.reason_phrase or "Error"
            raise GatewayAPIError(f"{resp.status_code} {reason}", status_code=resp.status_code)

    @staticmethod
    def _decode(resp: httpx.Response, model: type[M]) -> M:
        try:
            return model.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise DecodeError(f"Invalid JSON from {resp.request.url.path}: {e}", status_code=resp.status_code) from e

    def node_information(self) -> NodeInformation:
        resp = self._request("GET", "/")
        self._raise_for_status(resp)
        return self._decode(resp, NodeInformation)

    def get_upstream(self, name: str) -> Upstream | None:
        resp = self._request("GET", f"/upstreams/{_segment(name)}")
        if resp.status_code == 404:
            log_event("DEBUG", "upstream not found", name=name)
            return None
        self._raise_for_status(resp)
        return self._decode(resp, Upstream)

    def create_upstream(self, name: str) -> None:
        body = UpstreamRequest(name=name).model_dump()
        resp = self._request("POST", "/upstreams", json=body)
        self._raise_for_status(resp)

    def list_active_targets(self, upstream: str) -> TargetList:
        resp = self._request("GET", f"/upstreams/{_segment(upstream)}/targets/active")
        self._raise_for_status(resp)
        return self._decode(resp, TargetList)

    def add_target(self, upstream: str, target: str, weight: int = 100) -> Target:
        body = TargetRequest(target=target, weight=weight).model_dump()
        resp = self._request("POST", f"/upstreams/{_segment(upstream)}/targets", json=body)
        self._raise_for_status(resp)
        return self._decode(resp, Target)

    def delete_target(self, upstream: str, target_id: str) -> None:
        resp = self._request("DELETE", f"/upstreams/{_segment(upstream)}/targets/{_segment(target_id)}")
        if resp.status_code == 404:
            log_event("DEBUG", "unable to delete target from upstream: target not found", upstream=upstream, target_id=target_id)
            return
        self._raise_for_status(resp)
