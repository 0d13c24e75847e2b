"""
Hotelius Integration — Inbound Webhook Processing
===================================================
Receives signed payment-provider events and dispatches them to
registered handlers exactly once per external event id.

    size check → signature → parse → record received
      → already processed?  → handler lookup → claim → handler
      → processed | failed (raise, provider retries)

Doctrine: External systems NEVER bypass validation.
The dispatch table is injected; there is no module-level registry.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from core.time.clock import Clock
from integration.adapters import (
    PayloadTooLargeError,
    ValidationError,
    WebhookHandlerError,
    verify_stripe_signature,
)

logger = logging.getLogger("hotelius.webhooks")

DEFAULT_MAX_PAYLOAD_BYTES = 64 * 1024
DEFAULT_SIGNATURE_TOLERANCE_SECONDS = 300
DEFAULT_PROCESSING_LEASE_SECONDS = 300

UNHANDLED_EVENT_TYPE = "unhandled_event_type"


# ══════════════════════════════════════════════════════════════
# EVENT RECORD
# ══════════════════════════════════════════════════════════════

class WebhookEventStatus(str, Enum):
    RECEIVED = "received"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


CLAIMABLE_STATUSES = frozenset({WebhookEventStatus.RECEIVED, WebhookEventStatus.FAILED})


@dataclass(frozen=True)
class WebhookEvent:
    external_id: str
    event_type: str
    status: WebhookEventStatus
    received_at: datetime
    updated_at: datetime
    payload: Dict[str, Any] = field(default_factory=dict)
    processed_at: Optional[datetime] = None
    last_error: Optional[str] = None
    note: Optional[str] = None
    attempts: int = 0

    def to_dict(self) -> dict:
        return {
            "external_id": self.external_id,
            "event_type": self.event_type,
            "status": self.status.value,
            "received_at": self.received_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
            "last_error": self.last_error,
            "note": self.note,
            "attempts": self.attempts,
        }


class WebhookEventStore(Protocol):
    def record_received(
        self, external_id: str, event_type: str, payload: dict, now: datetime
    ) -> bool:
        """Insert-if-absent. True only for the first writer."""
        ...

    def is_processed(self, external_id: str) -> bool: ...

    def claim(self, external_id: str, now: datetime, lease_seconds: int) -> bool:
        """
        Atomically move received|failed → processing.
        A processing record older than the lease may be taken over.
        """
        ...

    def mark_processed(
        self, external_id: str, now: datetime, note: Optional[str] = None
    ) -> None: ...

    def mark_failed(self, external_id: str, now: datetime, error: str) -> None: ...

    def get(self, external_id: str) -> Optional[WebhookEvent]: ...


class InMemoryWebhookEventStore:
    """Thread-safe WebhookEventStore. Records are never deleted."""

    def __init__(self):
        self._lock = threading.Lock()
        self._events: Dict[str, WebhookEvent] = {}

    def record_received(self, external_id, event_type, payload, now):
        with self._lock:
            if external_id in self._events:
                return False
            self._events[external_id] = WebhookEvent(
                external_id=external_id,
                event_type=event_type,
                status=WebhookEventStatus.RECEIVED,
                received_at=now,
                updated_at=now,
                payload=dict(payload),
            )
            return True

    def is_processed(self, external_id):
        with self._lock:
            event = self._events.get(external_id)
            return event is not None and event.status == WebhookEventStatus.PROCESSED

    def claim(self, external_id, now, lease_seconds=DEFAULT_PROCESSING_LEASE_SECONDS):
        with self._lock:
            event = self._events.get(external_id)
            if event is None:
                return False
            stale = (
                event.status == WebhookEventStatus.PROCESSING
                and event.updated_at <= now - timedelta(seconds=lease_seconds)
            )
            if event.status not in CLAIMABLE_STATUSES and not stale:
                return False
            self._events[external_id] = replace(
                event, status=WebhookEventStatus.PROCESSING,
                updated_at=now, attempts=event.attempts + 1,
            )
            return True

    def mark_processed(self, external_id, now, note=None):
        with self._lock:
            event = self._events[external_id]
            self._events[external_id] = replace(
                event, status=WebhookEventStatus.PROCESSED,
                processed_at=now, updated_at=now, note=note, last_error=None,
            )

    def mark_failed(self, external_id, now, error):
        with self._lock:
            event = self._events[external_id]
            self._events[external_id] = replace(
                event, status=WebhookEventStatus.FAILED,
                updated_at=now, last_error=error,
            )

    def get(self, external_id):
        with self._lock:
            return self._events.get(external_id)

    def list_events(self) -> List[WebhookEvent]:
        with self._lock:
            return sorted(self._events.values(), key=lambda e: e.received_at)


# ══════════════════════════════════════════════════════════════
# HANDLER REGISTRY
# ══════════════════════════════════════════════════════════════

WebhookHandler = Callable[[Dict[str, Any]], None]


class WebhookHandlerRegistry:
    """Event type → handler. One handler per type."""

    def __init__(self, handlers: Optional[Dict[str, WebhookHandler]] = None) -> None:
        self._handlers: Dict[str, WebhookHandler] = {}
        for event_type, handler in (handlers or {}).items():
            self.register(event_type, handler)

    def register(self, event_type: str, handler: WebhookHandler) -> None:
        if not event_type:
            raise ValueError("event_type must be non-empty.")
        if event_type in self._handlers:
            raise ValueError(f"Handler already registered for '{event_type}'.")
        self._handlers[event_type] = handler

    def get(self, event_type: str) -> Optional[WebhookHandler]:
        return self._handlers.get(event_type)

    def list_event_types(self) -> List[str]:
        return sorted(self._handlers)


# ══════════════════════════════════════════════════════════════
# PROCESSOR
# ══════════════════════════════════════════════════════════════

class WebhookOutcome(str, Enum):
    PROCESSED = "processed"
    ALREADY_PROCESSED = "already_processed"
    UNHANDLED_EVENT_TYPE = "unhandled_event_type"


@dataclass(frozen=True)
class WebhookResult:
    status: WebhookOutcome
    event_id: str
    event_type: str

    def to_dict(self) -> dict:
        return {
            "received": True,
            "status": self.status.value,
            "event_id": self.event_id,
            "event_type": self.event_type,
        }


def parse_event(body: bytes) -> Dict[str, Any]:
    try:
        event = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise ValidationError(f"Webhook body is not valid JSON: {exc}", system_id="stripe")
    if not isinstance(event, dict):
        raise ValidationError("Webhook body must be a JSON object.", system_id="stripe")
    for key in ("id", "type"):
        if not isinstance(event.get(key), str) or not event[key]:
            raise ValidationError(f"Webhook event is missing '{key}'.", system_id="stripe")
    return event


class WebhookEventProcessor:
    def __init__(
        self,
        *,
        store: WebhookEventStore,
        handlers: WebhookHandlerRegistry,
        clock: Clock,
        max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
        signature_tolerance_seconds: int = DEFAULT_SIGNATURE_TOLERANCE_SECONDS,
        processing_lease_seconds: int = DEFAULT_PROCESSING_LEASE_SECONDS,
    ) -> None:
        self._store = store
        self._handlers = handlers
        self._clock = clock
        self._max_payload_bytes = max_payload_bytes
        self._tolerance = signature_tolerance_seconds
        self._lease = processing_lease_seconds

    def process(self, body: bytes, signature: Optional[str], secret: str) -> WebhookResult:
        if len(body) > self._max_payload_bytes:
            raise PayloadTooLargeError(len(body), self._max_payload_bytes, system_id="stripe")

        verify_stripe_signature(body, signature, secret, self._clock.now_utc(), self._tolerance)
        event = parse_event(body)
        event_id, event_type = event["id"], event["type"]

        logger.info(f"webhook received: {event_type} ({event_id})")
        self._store.record_received(event_id, event_type, event, self._clock.now_utc())

        if self._store.is_processed(event_id):
            logger.info(f"webhook {event_id} already processed")
            return WebhookResult(WebhookOutcome.ALREADY_PROCESSED, event_id, event_type)

        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info(f"no handler for webhook type {event_type}")
            self._store.mark_processed(event_id, self._clock.now_utc(), note=UNHANDLED_EVENT_TYPE)
            return WebhookResult(WebhookOutcome.UNHANDLED_EVENT_TYPE, event_id, event_type)

        if not self._store.claim(event_id, self._clock.now_utc(), self._lease):
            logger.info(f"webhook {event_id} claimed by another delivery")
            return WebhookResult(WebhookOutcome.ALREADY_PROCESSED, event_id, event_type)

        try:
            handler(event)
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            self._store.mark_failed(event_id, self._clock.now_utc(), message)
            logger.exception(f"webhook {event_type} ({event_id}) failed")
            raise WebhookHandlerError(
                message, event_id=event_id, event_type=event_type, system_id="stripe",
            ) from exc

        self._store.mark_processed(event_id, self._clock.now_utc())
        logger.info(f"webhook processed: {event_type} ({event_id})")
        return WebhookResult(WebhookOutcome.PROCESSED, event_id, event_type)
