"""
Webhook events for blocked transactions.

Every BLOCKED result yields a tx.blocked event; a finding flagged as a SOX 404
material weakness yields tx.material_weakness as well. Events are POSTed to
subscribers with an HMAC-SHA256 signature of the canonical body:

    X-Hecke-Signature: sha256=<hex>

Delivery is best effort. Failures are logged and never affect the verdict.
"""

import hashlib
import hmac
import logging
import secrets
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from heckegate import Transaction, VerificationResult, canonicalize

from .logging_config import audit_log

logger = logging.getLogger(__name__)

EVENT_BLOCKED = "tx.blocked"
EVENT_MATERIAL_WEAKNESS = "tx.material_weakness"
SIGNATURE_HEADER = "X-Hecke-Signature"


def build_webhook_events(result: VerificationResult, transaction: Transaction) -> List[Dict[str, Any]]:
    """Events for one result; empty for an approved transaction."""
    if not result.blocked():
        return []

    finding = result.finding
    base = {
        "txId": result.transaction_id,
        "finding": {"code": finding.code, "severity": finding.severity},
        "proof": {"hash": result.proof.content_hash, "violated": list(result.proof.fired_rules)},
        "amount": transaction.amount,
    }

    events = [{"event": EVENT_BLOCKED, **base}]
    if finding.material_weakness:
        events.append({"event": EVENT_MATERIAL_WEAKNESS, **base})
    return events


def sign_body(secret: str, body: bytes) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def verify_body(secret: str, body: bytes, header: str) -> bool:
    """Receiver-side check of the signature header."""
    return hmac.compare_digest(sign_body(secret, body), header or "")


@dataclass(frozen=True)
class Subscription:
    id: str
    url: str
    events: tuple
    secret: str

    def wants(self, event: str) -> bool:
        return event in self.events

    def to_dict(self) -> Dict[str, Any]:
        # Secret is write-only
        return {"id": self.id, "url": self.url, "events": list(self.events)}


class WebhookRegistry:
    """In-memory subscriptions, safe for concurrent request handlers."""

    def __init__(self):
        self._lock = threading.RLock()
        self._subscriptions: Dict[str, Subscription] = {}

    def register(self, url: str, events: List[str], secret: str) -> Subscription:
        sub = Subscription(
            id=f"wh_{secrets.token_hex(8)}",
            url=url,
            events=tuple(dict.fromkeys(events)),
            secret=secret
        )
        with self._lock:
            self._subscriptions[sub.id] = sub
        logger.info("Registered webhook %s -> %s %s", sub.id, url, list(sub.events))
        return sub

    def unregister(self, subscription_id: str) -> bool:
        with self._lock:
            removed = self._subscriptions.pop(subscription_id, None)
        if removed:
            logger.info("Unregistered webhook %s", subscription_id)
        return removed is not None

    def get(self, subscription_id: str) -> Optional[Subscription]:
        with self._lock:
            return self._subscriptions.get(subscription_id)

    def subscribers(self, event: str) -> List[Subscription]:
        with self._lock:
            return [s for s in self._subscriptions.values() if s.wants(event)]

    def clear(self):
        with self._lock:
            self._subscriptions.clear()

    def __len__(self):
        with self._lock:
            return len(self._subscriptions)


class WebhookDispatcher:
    """POSTs events to the subscribers of a registry."""

    def __init__(self, registry: WebhookRegistry, timeout: float = 2.0):
        self.registry = registry
        self.timeout = timeout

    def deliver(self, subscription: Subscription, event: Dict[str, Any]) -> bool:
        body = canonicalize(event)
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: sign_body(subscription.secret, body),
        }

        try:
            r = requests.post(subscription.url, data=body, headers=headers, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            status_code = e.response.status_code if e.response is not None else None
            audit_log.webhook_delivery(
                subscription.id, event["event"], event["txId"], "FAILED",
                status_code=status_code, error=str(e)
            )
            return False

        audit_log.webhook_delivery(
            subscription.id, event["event"], event["txId"], "DELIVERED", status_code=r.status_code
        )
        return True

    def dispatch(self, events: List[Dict[str, Any]]) -> int:
        """Deliver every event to its subscribers; returns the number delivered."""
        delivered = 0
        for event in events:
            for sub in self.registry.subscribers(event["event"]):
                if self.deliver(sub, event):
                    delivered += 1
        return delivered
