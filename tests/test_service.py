import json
from datetime import datetime, timedelta, timezone

import pytest

from servicebus_queue.queue import models
from servicebus_queue.queue.service import ServiceBusQueue
from conftest import FakeBroker

FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

def test_push_sends_job_payload_to_default_queue(queue, broker):
    queue.push("emails.send", {"to": "a@example.com"})

    [(name, message)] = broker.sent
    assert name == "default"
    assert json.loads(message.body) == {"job": "emails.send", "data": {"to": "a@example.com"}}
    assert message.scheduled_enqueue_time_utc is None

def test_push_raw_sends_payload_untouched(queue, broker):
    queue.push_raw('{"job": "x", "data": 1}', "reports")

    assert broker.sent[0][0] == "reports"
    assert broker.sent[0][1].body == '{"job": "x", "data": 1}'

def test_push_accepts_registered_handler(queue, broker, registry):
    @registry.task("reports.build")
    def build(job, data):
        pass

    queue.push(build, [1, 2])
    assert json.loads(broker.sent[0][1].body)["job"] == "reports.build"

def test_push_rejects_unserializable_data(queue, broker):
    with pytest.raises(TypeError):
        queue.push("x", object())
    assert broker.sent == []

def test_later_schedules_message_relative_to_now_in_utc(queue, broker, monkeypatch):
    monkeypatch.setattr(models, "utcnow", lambda: FIXED_NOW)

    message = queue.later(90, "reports.build", {"id": 7})

    assert message.scheduled_enqueue_time_utc == FIXED_NOW + timedelta(seconds=90)
    assert message.scheduled_enqueue_time_utc.tzinfo == timezone.utc
    assert broker.sent[0][1] is message

def test_later_accepts_timedelta_and_datetime(queue, monkeypatch):
    monkeypatch.setattr(models, "utcnow", lambda: FIXED_NOW)

    assert queue.later(timedelta(minutes=5), "x").scheduled_enqueue_time_utc == FIXED_NOW + timedelta(minutes=5)

    naive = datetime(2030, 1, 1, 8, 30)
    assert queue.later(naive, "x").scheduled_enqueue_time_utc == naive.replace(tzinfo=timezone.utc)

    aware = datetime(2030, 1, 1, 10, 30, tzinfo=timezone(timedelta(hours=2)))
    scheduled = queue.later(aware, "x").scheduled_enqueue_time_utc
    assert scheduled == datetime(2030, 1, 1, 8, 30, tzinfo=timezone.utc)
    assert scheduled.tzinfo == timezone.utc

def test_delayed_message_is_not_popped(queue):
    queue.later(60, "x")
    assert queue.pop() is None

def test_pop_on_empty_queue_returns_none(queue):
    assert queue.pop() is None

def test_pop_returns_locked_job(queue, broker):
    queue.push("emails.send", {"to": "b@example.com"}, "mail")

    job = queue.pop("mail")

    assert job.queue == "mail"
    assert job.get_name() == "emails.send"
    assert job.payload()["data"] == {"to": "b@example.com"}
    assert job.job_id in broker.locked

def test_size_reflects_broker_count_after_pushes(queue):
    for i in range(4):
        queue.push("x", i)
    assert queue.size() == 4

    queue.pop()
    # Locked messages are still counted by the broker
    assert queue.size() == 4

def test_get_queue_none_resolves_to_default(queue):
    assert queue.get_queue(None) == "default"
    assert queue.get_queue("") == "default"
    assert queue.get_queue("other") == "other"

def test_get_queue_creates_missing_queue_once(queue, broker):
    queue.get_queue("invoices")
    queue.get_queue("invoices")

    assert broker.created == ["invoices"]

def test_get_queue_checks_resolved_name_not_raw_argument():
    broker = FakeBroker()
    adapter = ServiceBusQueue(broker, "jobs")

    adapter.push("x")

    assert broker.created == ["jobs"]

def test_every_operation_checks_queue_existence(queue, broker):
    queue.push("x")
    queue.size()
    queue.pop()
    assert broker.list_calls == 3

def test_auto_create_disabled_skips_listing(broker):
    adapter = ServiceBusQueue(broker, "default", auto_create=False)

    with pytest.raises(LookupError):
        adapter.push("x", queue="missing")
    assert broker.list_calls == 0
    assert broker.created == []

def test_broker_errors_propagate(queue, broker):
    def boom(name, message):
        raise ConnectionError("broker unavailable")
    broker.send_message = boom

    with pytest.raises(ConnectionError, match="broker unavailable"):
        queue.push("x")

def test_get_broker_returns_injected_client(queue, broker):
    assert queue.get_broker() is broker
