from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query
from servicebus_queue.queue.schemas import PushRequest, PushRawRequest, LaterRequest
from servicebus_queue.queue.dependencies import get_queue
from servicebus_queue.queue.service import ServiceBusQueue

router = APIRouter(tags=["Queue"])

# Plain `def` routes: the broker SDK blocks, so FastAPI runs these in its threadpool.

@router.post("/push")
def push_job(req: PushRequest, queue: ServiceBusQueue = Depends(get_queue)):
    try:
        queue.push(req.job, req.data, req.queue)
        return {"status": "ok", "queue": req.queue or queue.default}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/push_raw")
def push_raw(req: PushRawRequest, queue: ServiceBusQueue = Depends(get_queue)):
    try:
        queue.push_raw(req.payload, req.queue)
        return {"status": "ok", "queue": req.queue or queue.default}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/later")
def later_job(req: LaterRequest, queue: ServiceBusQueue = Depends(get_queue)):
    try:
        message = queue.later(req.delay, req.job, req.data, req.queue)
        return {
            "status": "ok",
            "queue": req.queue or queue.default,
            "scheduled_enqueue_time_utc": message.scheduled_enqueue_time_utc.isoformat(),
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/size")
def queue_size(name: Optional[str] = Query(default=None, alias="queue"), queue: ServiceBusQueue = Depends(get_queue)):
    try:
        return {"status": "ok", "queue": name or queue.default, "size": queue.size(name)}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/health")
def health():
    return {"status": "ok"}
