import logging
import threading
from typing import List, Optional

from azure.core.exceptions import ResourceExistsError
from azure.servicebus import ServiceBusClient, ServiceBusMessage, ServiceBusReceiveMode
from azure.servicebus.management import ServiceBusAdministrationClient

from servicebus_queue.queue.models import BrokerMessage, ReceivedMessage, QueueInfo

logger = logging.getLogger(__name__)

class BrokerClient:
    """The broker capabilities the queue adapter relies on."""

    def list_queues(self) -> List[str]:
        raise NotImplementedError

    def create_queue(self, name: str) -> bool:
        """Creates the queue. Returns False if it already existed."""
        raise NotImplementedError

    def send_message(self, queue: str, message: BrokerMessage) -> None:
        raise NotImplementedError

    def receive_message(self, queue: str, peek_lock: bool = True,
                        max_wait_time: Optional[float] = None) -> Optional[ReceivedMessage]:
        raise NotImplementedError

    def get_queue_info(self, queue: str) -> QueueInfo:
        raise NotImplementedError

    def complete_message(self, message: ReceivedMessage) -> None:
        raise NotImplementedError

    def abandon_message(self, message: ReceivedMessage) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass

class ServiceBusBroker(BrokerClient):
    """
    Azure Service Bus implementation of the broker contract.

    Queue management goes through the administration client, messaging
    through the data-plane client. A peek-lock receiver stays open until the
    message it returned is settled.

    The SDK clients are not thread-safe, and the HTTP API calls in from a
    threadpool, so every SDK call runs under one lock.
    """
    def __init__(self, client: ServiceBusClient, admin_client: ServiceBusAdministrationClient,
                 max_wait_time: float = 5.0):
        self.client = client
        self.admin_client = admin_client
        self.max_wait_time = max_wait_time
        self._lock = threading.Lock()

    @classmethod
    def from_connection_string(cls, conn_str: str, max_wait_time: float = 5.0) -> "ServiceBusBroker":
        return cls(
            ServiceBusClient.from_connection_string(conn_str),
            ServiceBusAdministrationClient.from_connection_string(conn_str),
            max_wait_time=max_wait_time,
        )

    def list_queues(self) -> List[str]:
        with self._lock:
            return [q.name for q in self.admin_client.list_queues()]

    def create_queue(self, name: str) -> bool:
        try:
            with self._lock:
                self.admin_client.create_queue(name)
        except ResourceExistsError:
            # Lost the check-then-create race to another creator
            logger.info(f"Queue {name} was created concurrently, continuing")
            return False
        logger.info({"event": "queue_created", "queue": name})
        return True

    def send_message(self, queue: str, message: BrokerMessage) -> None:
        sb_message = ServiceBusMessage(
            message.body,
            scheduled_enqueue_time_utc=message.scheduled_enqueue_time_utc,
        )
        with self._lock:
            with self.client.get_queue_sender(queue_name=queue) as sender:
                sender.send_messages(sb_message)

    def receive_message(self, queue: str, peek_lock: bool = True,
                        max_wait_time: Optional[float] = None) -> Optional[ReceivedMessage]:
        mode = ServiceBusReceiveMode.PEEK_LOCK if peek_lock else ServiceBusReceiveMode.RECEIVE_AND_DELETE
        with self._lock:
            receiver = self.client.get_queue_receiver(queue_name=queue, receive_mode=mode)
            try:
                received = receiver.receive_messages(
                    max_message_count=1,
                    max_wait_time=max_wait_time if max_wait_time is not None else self.max_wait_time,
                )
            except Exception:
                receiver.close()
                raise

            if not received:
                receiver.close()
                return None

            sb_message = received[0]
            if not peek_lock:
                receiver.close()
                receiver = None

        return ReceivedMessage(
            body=str(sb_message),
            message_id=sb_message.message_id,
            delivery_count=sb_message.delivery_count or 0,
            lock_token=str(sb_message.lock_token) if sb_message.lock_token else None,
            raw=sb_message,
            receiver=receiver,
        )

    def get_queue_info(self, queue: str) -> QueueInfo:
        with self._lock:
            props = self.admin_client.get_queue_runtime_properties(queue)
        return QueueInfo(queue, props.total_message_count)

    def complete_message(self, message: ReceivedMessage) -> None:
        with self._lock:
            try:
                message.receiver.complete_message(message.raw)
            finally:
                message.receiver.close()

    def abandon_message(self, message: ReceivedMessage) -> None:
        with self._lock:
            try:
                message.receiver.abandon_message(message.raw)
            finally:
                message.receiver.close()

    def close(self) -> None:
        with self._lock:
            self.client.close()
            self.admin_client.close()
