from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator

from .settings import MAX_TARGET_WEIGHT


class NodeInformation(BaseModel):
    hostname: str = ""
    lua_version: str = ""
    version: str = ""


class UpstreamRequest(BaseModel):
    name: str


class Upstream(BaseModel):
    id: str = ""
    name: str
    slots: int | None = None
    created_at: float | None = None


class TargetRequest(BaseModel):
    target: str = Field(..., description="host:port")
    weight: int = Field(100, ge=0, le=MAX_TARGET_WEIGHT)


class Target(BaseModel):
    id: str
    target: str
    weight: int = 100
    upstream_id: str = ""
    created_at: float | None = None


class TargetList(BaseModel):
    total: int = 0
    data: list[Target] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _empty_listing(cls, raw: Any) -> Any:
        # Kong encodes an empty listing as {"total": 0, "data": {}} or drops "data".
        if not isinstance(raw, dict):
            return raw
        data = raw.get("data")
        if not data:
            return {**raw, "total": raw.get("total") or 0, "data": []}
        if "total" not in raw and isinstance(data, list):
            return {**raw, "total": len(data)}
        return raw
