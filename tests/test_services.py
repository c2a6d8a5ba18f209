import asyncio
import json
import threading

import pytest

from routers.appointments import default_slot_times
from services import report_service
from services.exceptions import AIServiceError, FileTooLarge, UnsupportedFileType
from services.file_store import validate_upload
from services.follow_up import FollowUpBucket
from services.realtime import BROADCAST, EventBroker, sse_format, sse_stream


# ==========================================================
# Realtime broker
# ==========================================================
def test_publish_reaches_matching_subscribers_only():
    async def scenario():
        broker = EventBroker()
        parent = broker.subscribe(1, {"s1"})
        teacher = broker.subscribe(1, {"7"})
        other_school = broker.subscribe(2, {"s1"})

        assert broker.publish({"id": 1, "school_id": 1, "target_user_id": "s1"}) == 1
        assert broker.publish({"id": 2, "school_id": 1, "target_user_id": BROADCAST}) == 2

        assert (await parent.get(timeout=0.1))["id"] == 1
        assert (await parent.get(timeout=0.1))["id"] == 2
        assert (await teacher.get(timeout=0.1))["id"] == 2
        assert await teacher.get(timeout=0.01) is None
        assert await other_school.get(timeout=0.01) is None

    asyncio.run(scenario())


def test_publish_from_worker_threads_while_subscribers_churn():
    broker = EventBroker()
    errors = []
    stop = threading.Event()

    def publisher():
        try:
            while not stop.is_set():
                broker.publish({"id": 1, "school_id": 1, "target_user_id": "nobody"})
        except Exception as e:  # surfaced by the assertion below
            errors.append(e)

    workers = [threading.Thread(target=publisher) for _ in range(4)]
    for w in workers:
        w.start()
    try:
        for _ in range(2000):
            broker.subscribe(1, {"s1"}).unsubscribe()
    finally:
        stop.set()
        for w in workers:
            w.join()

    assert errors == []
    assert broker.subscriber_count() == 0


def test_sse_stream_unsubscribes_when_closed():
    async def scenario():
        broker = EventBroker()
        sub = broker.subscribe(1, {"s1"})
        stream = sse_stream(sub, keepalive=0.01)
        assert await stream.__anext__() == ": connected\n\n"
        assert await stream.__anext__() == ": keepalive\n\n"
        broker.publish({"id": 9, "school_id": 1, "target_user_id": "s1", "title": "تنبيه"})
        frame = await stream.__anext__()
        assert frame.startswith("id: 9\nevent: notification\n")
        await stream.aclose()
        assert broker.subscriber_count(1) == 0

    asyncio.run(scenario())


def test_sse_format_keeps_arabic():
    frame = sse_format({"id": 3, "title": "تنبيه غياب"})
    payload = json.loads(frame.split("data: ", 1)[1])
    assert payload["title"] == "تنبيه غياب"


# ==========================================================
# Follow-up bucket
# ==========================================================
def test_follow_up_bucket_is_per_session():
    bucket = FollowUpBucket()
    bucket.add("t1", "s1")
    bucket.add("t2", "s2")
    bucket.remove("t1", "missing")
    assert bucket.ids("t1") == {"s1"}
    bucket.clear("t1")
    assert bucket.ids("t1") == set()
    assert bucket.ids("t2") == {"s2"}


# ==========================================================
# Uploads / slots
# ==========================================================
def test_validate_upload_limits():
    validate_upload("image/png", 1024)
    with pytest.raises(FileTooLarge):
        validate_upload("application/pdf", 5 * 1024 * 1024 + 1)
    with pytest.raises(UnsupportedFileType):
        validate_upload("application/zip", 10)


def test_default_slot_times():
    times = default_slot_times()
    assert times[0] == ("08:00", "08:30")
    assert times[-1] == ("10:30", "11:00")
    assert len(times) == 6


# ==========================================================
# AI report helpers
# ==========================================================
@pytest.mark.parametrize("raw,expected", [
    ("Positive", "positive"),
    (" negative.", "negative"),
    ("not positive, negative", "negative"),
    ("", "neutral"),
    ("mixed", "neutral"),
])
def test_parse_sentiment(raw, expected):
    assert report_service.parse_sentiment(raw) == expected


def test_fallback_payload_shape():
    payload = report_service.fallback_payload(AIServiceError("timeout"))
    assert payload["success"] is False
    assert payload["data"]["text"] == report_service.AI_FALLBACK_MESSAGE
    assert payload["error"]["code"] == "AI_SERVICE_ERROR"


def test_analyze_sentiment_defaults_to_neutral_on_failure():
    class Broken:
        async def complete(self, prompt, system=None):
            raise AIServiceError("down")

    assert asyncio.run(report_service.analyze_sentiment(Broken(), "نص")) == "neutral"


def test_counselor_name():
    class S:
        def __init__(self, name, permissions):
            self.name, self.permissions = name, permissions

    assert report_service.counselor_name([S("أ. خالد", ["attendance"]), S("أ. سعد", ["students"])]) == "أ. سعد"
    assert report_service.counselor_name([]) == report_service.DEFAULT_COUNSELOR_TITLE
