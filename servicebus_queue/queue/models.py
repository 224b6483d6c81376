import json
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

Delay = Union[int, float, timedelta, datetime]

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def release_time(delay: Delay) -> datetime:
    """Absolute UTC time at which something delayed by `delay` becomes visible."""
    if isinstance(delay, datetime):
        if delay.tzinfo is None:
            return delay.replace(tzinfo=timezone.utc)
        return delay.astimezone(timezone.utc)
    if not isinstance(delay, timedelta):
        delay = timedelta(seconds=delay)
    return utcnow() + delay

class BrokerMessage:
    """An outgoing message: the payload body plus an optional scheduled-visibility time (UTC)."""
    def __init__(self, body: str, scheduled_enqueue_time_utc: Optional[datetime] = None):
        self.body = body
        self.scheduled_enqueue_time_utc = scheduled_enqueue_time_utc

    def __repr__(self):
        return f"BrokerMessage(body={self.body!r}, scheduled_enqueue_time_utc={self.scheduled_enqueue_time_utc!r})"

class ReceivedMessage:
    """
    A message received in peek-lock mode.

    `raw` and `receiver` are whatever the broker client needs to settle the
    message later; the adapter never looks inside them.
    """
    def __init__(self, body: str, message_id: Optional[str] = None, delivery_count: int = 0,
                 lock_token: Optional[str] = None, raw: Any = None, receiver: Any = None):
        self.body = body
        self.message_id = message_id
        self.delivery_count = delivery_count
        self.lock_token = lock_token
        self.raw = raw
        self.receiver = receiver

class QueueInfo:
    def __init__(self, name: str, message_count: int):
        self.name = name
        self.message_count = message_count

def job_name_of(job: Any) -> str:
    """Registered handlers carry their name; anything else must already be a job name."""
    name = getattr(job, "job_name", None)
    if name:
        return name
    if isinstance(job, str):
        return job
    raise TypeError(f"Cannot derive a job name from {job!r}")

def create_payload(job: Any, data: Any = "") -> str:
    return json.dumps({"job": job_name_of(job), "data": data})
