import itertools
import pytest

from servicebus_queue.queue.broker import BrokerClient
from servicebus_queue.queue.models import ReceivedMessage, QueueInfo
from servicebus_queue.queue.registry import JobRegistry
from servicebus_queue.queue.service import ServiceBusQueue

class FakeBroker(BrokerClient):
    """In-memory stand-in for the hosted broker."""
    def __init__(self, queues=()):
        self.queues = {name: [] for name in queues}
        self.locked = {}
        self.created = []
        self.sent = []
        self.completed = []
        self.abandoned = []
        self.list_calls = 0
        self.closed = False
        self._ids = itertools.count(1)

    def list_queues(self):
        self.list_calls += 1
        return list(self.queues)

    def create_queue(self, name):
        if name in self.queues:
            return False
        self.queues[name] = []
        self.created.append(name)
        return True

    def send_message(self, queue, message):
        if queue not in self.queues:
            raise LookupError(f"queue {queue} does not exist")
        entry = {"id": str(next(self._ids)), "message": message, "delivery_count": 0}
        self.queues[queue].append(entry)
        self.sent.append((queue, message))

    def receive_message(self, queue, peek_lock=True, max_wait_time=None):
        if queue not in self.queues:
            raise LookupError(f"queue {queue} does not exist")
        for entry in self.queues[queue]:
            if entry["message"].scheduled_enqueue_time_utc is None:
                self.queues[queue].remove(entry)
                entry["delivery_count"] += 1
                self.locked[entry["id"]] = (queue, entry)
                return ReceivedMessage(
                    body=entry["message"].body,
                    message_id=entry["id"],
                    delivery_count=entry["delivery_count"],
                    lock_token=f"lock-{entry['id']}",
                    raw=entry,
                    receiver=self,
                )
        return None

    def get_queue_info(self, queue):
        locked = sum(1 for q, _ in self.locked.values() if q == queue)
        return QueueInfo(queue, len(self.queues[queue]) + locked)

    def complete_message(self, message):
        self.locked.pop(message.message_id)
        self.completed.append(message.message_id)

    def abandon_message(self, message):
        queue, entry = self.locked.pop(message.message_id)
        self.queues[queue].insert(0, entry)
        self.abandoned.append(message.message_id)

    def close(self):
        self.closed = True

@pytest.fixture
def broker():
    return FakeBroker(queues=["default"])

@pytest.fixture
def queue(broker):
    return ServiceBusQueue(broker, "default")

@pytest.fixture
def registry():
    return JobRegistry()
