import logging

from servicebus_queue.config import AppConfig, settings
from servicebus_queue.queue.broker import ServiceBusBroker
from servicebus_queue.queue.errors import ConfigurationError
from servicebus_queue.queue.service import ServiceBusQueue

logger = logging.getLogger(__name__)

def connect(config: AppConfig = settings) -> ServiceBusQueue:
    """Build a queue adapter from configuration, making sure the default queue exists."""
    if not config.servicebus_connection_string:
        raise ConfigurationError("SERVICEBUS_CONNECTION_STRING is not set")

    broker = ServiceBusBroker.from_connection_string(
        config.servicebus_connection_string,
        max_wait_time=config.receive_wait_seconds,
    )
    queue = ServiceBusQueue(
        broker,
        config.default_queue,
        auto_create=config.auto_create_queues,
        receive_wait_seconds=config.receive_wait_seconds,
    )

    if config.auto_create_queues:
        queue.get_queue()

    logger.info({"event": "queue_connected", "default_queue": config.default_queue})
    return queue
