import logging
from typing import Any, Dict, Optional

from servicebus_queue.queue.broker import BrokerClient
from servicebus_queue.queue.jobs import ServiceBusJob
from servicebus_queue.queue.models import BrokerMessage, Delay, create_payload, release_time

logger = logging.getLogger(__name__)

class ServiceBusQueue:
    """
    Job queue backed by a hosted broker.

    Every call is forwarded straight to the broker client; broker errors
    reach the caller unchanged. Queues are created on first use.
    """
    def __init__(self, broker: BrokerClient, default: str, auto_create: bool = True,
                 receive_wait_seconds: Optional[float] = None):
        self.broker = broker
        self.default = default
        self.auto_create = auto_create
        self.receive_wait_seconds = receive_wait_seconds

    def push(self, job: Any, data: Any = "", queue: Optional[str] = None) -> BrokerMessage:
        """Push a new job onto the queue."""
        return self.push_raw(create_payload(job, data), queue)

    def push_raw(self, payload: str, queue: Optional[str] = None,
                 options: Optional[Dict[str, Any]] = None) -> BrokerMessage:
        """Push an already serialized payload onto the queue."""
        options = options or {}
        message = BrokerMessage(payload, options.get("scheduled_enqueue_time_utc"))
        name = self.get_queue(queue)
        self.broker.send_message(name, message)
        logger.debug(f"Sent message to {name}")
        return message

    def later(self, delay: Delay, job: Any, data: Any = "", queue: Optional[str] = None) -> BrokerMessage:
        """Push a job that only becomes visible once `delay` has passed."""
        return self.push_raw(
            create_payload(job, data),
            queue,
            {"scheduled_enqueue_time_utc": release_time(delay)},
        )

    def pop(self, queue: Optional[str] = None) -> Optional[ServiceBusJob]:
        """
        Receive the next message under a peek-lock.
        Returns None if the queue is empty.
        """
        name = self.get_queue(queue)
        message = self.broker.receive_message(name, peek_lock=True, max_wait_time=self.receive_wait_seconds)
        if message is None:
            return None
        logger.debug(f"Received message {message.message_id} from {name}")
        return ServiceBusJob(self, message, name)

    def size(self, queue: Optional[str] = None) -> int:
        return self.broker.get_queue_info(self.get_queue(queue)).message_count

    def get_queue(self, queue: Optional[str] = None) -> str:
        """
        Resolve the queue name (falling back to the default) and create the
        queue on the broker if it is not listed there yet.
        """
        name = queue or self.default
        if not self.auto_create:
            return name

        # Not atomic; the broker tolerates a concurrent creator.
        if name not in self.broker.list_queues():
            self.broker.create_queue(name)
        return name

    def get_broker(self) -> BrokerClient:
        return self.broker
