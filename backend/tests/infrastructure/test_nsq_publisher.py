"""NSQ Publisher — topic routing, payload encoding, and failure mapping.

Uses httpx.MockTransport in place of nsqd.
"""

import httpx
import pytest

from userservice.core.domain_types import ChangeKind, User
from userservice.core.errors import NotificationError
from userservice.infrastructure.nsq_publisher import (
    NSQPublisher,
    TOPIC_USER_CREATED,
    TOPIC_USER_DELETED,
    TOPIC_USER_UPDATED,
)

SOME_USER_ID = "asdf-asdf"


def _publisher(handler) -> tuple[NSQPublisher, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(
        transport=httpx.MockTransport(record), base_url="http://nsqd:4151",
    )
    return NSQPublisher(client), seen


@pytest.mark.parametrize("kind, topic", [
    (ChangeKind.CREATED, TOPIC_USER_CREATED),
    (ChangeKind.UPDATED, TOPIC_USER_UPDATED),
    (ChangeKind.DELETED, TOPIC_USER_DELETED),
])
async def test_publishes_json_encoded_id_to_topic(kind, topic):
    publisher, seen = _publisher(lambda r: httpx.Response(200, text="OK"))

    user = None if kind == ChangeKind.DELETED else User(id=SOME_USER_ID)
    await publisher.notify(kind, SOME_USER_ID, user)

    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/pub"
    assert request.url.params["topic"] == topic
    assert request.content == b'"asdf-asdf"'
    await publisher.aclose()


async def test_error_status_raises_notification_error():
    publisher, _ = _publisher(
        lambda r: httpx.Response(500, text="E_PUB_FAILED"),
    )

    with pytest.raises(NotificationError) as exc:
        await publisher.notify(ChangeKind.CREATED, SOME_USER_ID)

    assert exc.value.topic == TOPIC_USER_CREATED
    assert "500" in exc.value.message
    await publisher.aclose()


async def test_transport_error_raises_notification_error():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    publisher, _ = _publisher(refuse)

    with pytest.raises(NotificationError) as exc:
        await publisher.notify(ChangeKind.DELETED, SOME_USER_ID)

    assert exc.value.topic == TOPIC_USER_DELETED
    await publisher.aclose()


async def test_for_address_adds_scheme():
    publisher = NSQPublisher.for_address("nsqd:4151")
    base_url = publisher._client.base_url
    assert (base_url.scheme, base_url.host, base_url.port) == ("http", "nsqd", 4151)
    await publisher.aclose()
