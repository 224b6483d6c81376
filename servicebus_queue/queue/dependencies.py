from typing import Optional
from servicebus_queue.queue.service import ServiceBusQueue

# Global reference populated during app lifespan
_queue_instance: Optional[ServiceBusQueue] = None

def get_queue() -> ServiceBusQueue:
    """FastAPI Dependency for accessing the queue adapter."""
    if not _queue_instance:
        raise RuntimeError("Queue adapter is not initialized.")
    return _queue_instance

def set_queue(queue: Optional[ServiceBusQueue]):
    global _queue_instance
    _queue_instance = queue
