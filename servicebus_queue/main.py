import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager

from servicebus_queue.config import settings
from servicebus_queue.queue.connector import connect
from servicebus_queue.queue.dependencies import set_queue
from servicebus_queue.queue.router import router as queue_router

logging.basicConfig(level=settings.log_level, format='[%(process)d] %(message)s')
logger = logging.getLogger("servicebus_queue")

@asynccontextmanager
async def lifespan(app: FastAPI):
    queue = connect(settings)
    
    # Inject dependency
    set_queue(queue)
    logger.info({"event": "api_startup", "default_queue": queue.default})
    
    yield
    
    set_queue(None)
    queue.get_broker().close()
    logger.info({"event": "api_shutdown"})

app = FastAPI(lifespan=lifespan, title="Service Bus Job Queue")
app.include_router(queue_router)
