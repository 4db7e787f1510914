"""NSQ Publisher — ChangeObserver that publishes changed user ids to nsqd over HTTP.

Invariants:
    - One topic per ChangeKind: user.created, user.updated, user.deleted
    - Message body is the JSON-encoded user id (a JSON string), nothing else
    - Transport failures and non-2xx answers raise NotificationError (core/errors.py)
    - Never retries: the observed repository treats delivery as best-effort

Design Decisions:
    - nsqd's HTTP /pub endpoint over a TCP client: one httpx.AsyncClient, no extra
      protocol library, same client we already use in tests (ADR: small dependency surface)
    - Consumers re-read the record by id: the store is canonical, the message is a hint
"""

import json
import logging

import httpx

from userservice.core.domain_types import ChangeKind, User
from userservice.core.errors import NotificationError

logger = logging.getLogger(__name__)

TOPIC_USER_CREATED = "user.created"
TOPIC_USER_UPDATED = "user.updated"
TOPIC_USER_DELETED = "user.deleted"

_TOPICS = {
    ChangeKind.CREATED: TOPIC_USER_CREATED,
    ChangeKind.UPDATED: TOPIC_USER_UPDATED,
    ChangeKind.DELETED: TOPIC_USER_DELETED,
}


class NSQPublisher:
    """Publishes user change events through nsqd's HTTP API."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @classmethod
    def for_address(
        cls, nsqd_http_address: str, timeout_seconds: float = 5.0,
    ) -> "NSQPublisher":
        """Build a publisher owning its own client for `host:port`."""
        base_url = nsqd_http_address
        if not base_url.startswith(("http://", "https://")):
            base_url = f"http://{base_url}"
        return cls(httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds))

    async def notify(
        self, kind: ChangeKind, user_id: str, user: User | None = None,
    ) -> None:
        await self._publish(_TOPICS[kind], user_id)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _publish(self, topic: str, user_id: str) -> None:
        body = json.dumps(user_id).encode("utf-8")
        try:
            response = await self._client.post(
                "/pub", params={"topic": topic}, content=body,
            )
        except httpx.HTTPError as e:
            raise NotificationError(f"transport error: {e}", topic) from e
        if response.is_error:
            raise NotificationError(
                f"nsqd answered {response.status_code}: {response.text}", topic,
            )
        logger.debug(
            f"Published {topic}", extra={"user_id": user_id},
        )
