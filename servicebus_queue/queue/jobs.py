import json
import logging
from typing import Any, Dict, Optional

from servicebus_queue.queue.errors import JobAlreadySettledError
from servicebus_queue.queue.models import ReceivedMessage, release_time

logger = logging.getLogger(__name__)

class ServiceBusJob:
    """
    A peek-locked message handed to a worker.

    The lock is held until the job is deleted or released, or until the
    broker lets it expire.
    """
    def __init__(self, queue_adapter, message: ReceivedMessage, queue: str):
        self.queue_adapter = queue_adapter
        self.message = message
        self.queue = queue
        self._deleted = False
        self._released = False

    @property
    def job_id(self):
        return self.message.message_id

    def get_raw_body(self) -> str:
        return self.message.body

    def payload(self) -> Dict[str, Any]:
        return json.loads(self.message.body)

    def get_name(self) -> Optional[str]:
        try:
            payload = self.payload()
        except ValueError:
            return None
        if not isinstance(payload, dict):
            return None
        return payload.get("job")

    def attempts(self) -> int:
        # Service Bus counts the current delivery; delayed releases carry earlier ones in the payload
        try:
            carried = int(self.payload().get("attempts", 0))
        except (ValueError, TypeError, AttributeError):
            carried = 0
        return carried + max(1, self.message.delivery_count)

    def fire(self, registry) -> Any:
        """Run the registered handler with (job, data)."""
        payload = self.payload()
        handler = registry.resolve(payload.get("job"))
        return handler(self, payload.get("data"))

    def delete(self):
        self._ensure_unsettled()
        self.queue_adapter.get_broker().complete_message(self.message)
        self._deleted = True
        logger.debug(f"Deleted job {self.job_id} from {self.queue}")

    def release(self, delay: int = 0):
        """
        Put the job back on the queue.

        With no delay the lock is abandoned and the message is visible again
        right away. Service Bus cannot abandon with a delay, so a delayed
        release completes the original and then re-sends the body
        scheduled for later. If the lock is already gone the complete fails
        and nothing is re-sent; the broker redelivers the original.
        """
        self._ensure_unsettled()
        broker = self.queue_adapter.get_broker()
        if delay and delay > 0:
            body = self._body_with_attempts()
            broker.complete_message(self.message)
            try:
                self.queue_adapter.push_raw(body, self.queue, {"scheduled_enqueue_time_utc": release_time(delay)})
            except Exception:
                self._deleted = True
                logger.error(f"Job {self.job_id} was completed but could not be re-sent to {self.queue}: {body}")
                raise
        else:
            broker.abandon_message(self.message)
        self._released = True
        logger.debug(f"Released job {self.job_id} on {self.queue} (delay={delay})")

    def is_deleted(self) -> bool:
        return self._deleted

    def is_released(self) -> bool:
        return self._released

    def is_settled(self) -> bool:
        return self._deleted or self._released

    def _body_with_attempts(self) -> str:
        try:
            payload = self.payload()
        except ValueError:
            return self.message.body
        if not isinstance(payload, dict):
            return self.message.body
        payload["attempts"] = self.attempts()
        return json.dumps(payload)

    def _ensure_unsettled(self):
        if self.is_settled():
            raise JobAlreadySettledError(f"Job {self.job_id} has already been settled")
