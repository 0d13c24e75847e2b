"""
Hotelius HTTP API - Contracts
=============================
Framework-agnostic request/response DTOs for public endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class AvailabilityHttpRequest:
    hotel_id: str
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.hotel_id, str):
            raise ValueError("hotel_id must be a string.")


@dataclass(frozen=True)
class StripeWebhookHttpRequest:
    body: bytes
    signature: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.body, bytes):
            raise ValueError("body must be bytes.")


@dataclass(frozen=True)
class CreateBookingHttpRequest:
    hotel_id: str
    body: bytes

    def __post_init__(self):
        if not isinstance(self.hotel_id, str):
            raise ValueError("hotel_id must be a string.")
        if not isinstance(self.body, bytes):
            raise ValueError("body must be bytes.")


@dataclass(frozen=True)
class CronHttpRequest:
    authorization: Optional[str] = None


@dataclass(frozen=True)
class HttpApiErrorBody:
    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class HttpApiResponse:
    ok: bool
    data: Any = None
    error: Optional[HttpApiErrorBody] = None

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": True, "data": self.data}
        if self.error is None:
            raise ValueError("error must be set when ok is False.")
        return {"ok": False, "error": self.error.to_dict()}


@dataclass(frozen=True)
class HttpApiResult:
    """Handler output: transport status plus envelope payload."""

    status: int
    payload: dict[str, Any]

    @property
    def ok(self) -> bool:
        return bool(self.payload.get("ok"))
