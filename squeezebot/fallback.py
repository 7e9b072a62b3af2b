"""Hand-off of a run to the alternate execution environment via Dramatiq.

The alternate environment consumes ``compressimagesmessage`` with its own
worker. This side only publishes: it never declares an actor, so importing
the module does not require a broker to be configured.
"""

from __future__ import annotations

import json
import os
from typing import Any, Mapping, Optional

import dramatiq

from .constants import FALLBACK_ACTOR_NAME, FALLBACK_QUEUE_NAME, FALLBACK_QUEUE_URL_ENV
from .logging import get_logger

_LOGGER = get_logger("fallback")


class FallbackQueue:
    """Publishes serialized run payloads onto a named Dramatiq queue."""

    def __init__(
        self,
        broker: dramatiq.Broker,
        *,
        queue_name: str = FALLBACK_QUEUE_NAME,
        actor_name: str = FALLBACK_ACTOR_NAME,
    ) -> None:
        self.broker = broker
        self.queue_name = queue_name
        self.actor_name = actor_name

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Optional["FallbackQueue"]:
        """Build a Redis-backed queue when ``SQUEEZEBOT_FALLBACK_QUEUE_URL`` is set."""
        env = os.environ if environ is None else environ
        url = (env.get(FALLBACK_QUEUE_URL_ENV) or "").strip()
        if not url:
            return None

        from dramatiq.brokers.redis import RedisBroker

        return cls(RedisBroker(url=url))

    def enqueue(self, payload: Mapping[str, Any]) -> dramatiq.Message:
        """Serialize ``payload`` to JSON and enqueue it for the alternate worker."""
        body = json.dumps(dict(payload), sort_keys=True)
        self.broker.declare_queue(self.queue_name)
        message = dramatiq.Message(
            queue_name=self.queue_name,
            actor_name=self.actor_name,
            args=(body,),
            kwargs={},
            options={},
        )
        enqueued = self.broker.enqueue(message)
        _LOGGER.info("Queued fallback job %s on %s", enqueued.message_id, self.queue_name)
        return enqueued


__all__ = ["FallbackQueue"]
