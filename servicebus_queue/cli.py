import argparse
import importlib
import json
import logging
import sys

from servicebus_queue.config import settings
from servicebus_queue.queue.connector import connect
from servicebus_queue.queue.registry import JobRegistry
from servicebus_queue.queue.worker import Worker

logger = logging.getLogger("servicebus_queue")

def load_registry(target: str) -> JobRegistry:
    """Import a registry given as 'package.module:attribute'."""
    module_name, _, attr = target.partition(":")
    module = importlib.import_module(module_name)
    registry = getattr(module, attr or "registry")
    if not isinstance(registry, JobRegistry):
        raise TypeError(f"{target} is not a JobRegistry")
    return registry

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="servicebus-queue")
    sub = parser.add_subparsers(dest="command", required=True)

    work = sub.add_parser("work", help="Process jobs from a queue")
    work.add_argument("--queue", default=None)
    work.add_argument("--registry", required=True, help="module:attribute holding a JobRegistry")
    work.add_argument("--max-jobs", type=int, default=None)
    work.add_argument("--sleep", type=float, default=settings.worker_sleep_seconds)
    work.add_argument("--max-tries", type=int, default=settings.worker_max_tries)
    work.add_argument("--retry-delay", type=int, default=settings.worker_retry_delay)

    push = sub.add_parser("push", help="Push a job")
    push.add_argument("job")
    push.add_argument("--data", default='""', help="JSON-encoded job data")
    push.add_argument("--queue", default=None)
    push.add_argument("--delay", type=float, default=0)

    size = sub.add_parser("size", help="Print the number of messages in a queue")
    size.add_argument("--queue", default=None)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=settings.port)
    return parser

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level, format='[%(process)d] %(message)s')

    if args.command == "serve":
        import uvicorn
        uvicorn.run("servicebus_queue.main:app", host=args.host, port=args.port)
        return 0

    queue = connect(settings)
    try:
        if args.command == "work":
            worker = Worker(queue, load_registry(args.registry),
                            max_tries=args.max_tries, retry_delay=args.retry_delay)
            worker.run(args.queue, max_jobs=args.max_jobs, sleep=args.sleep)
        elif args.command == "push":
            data = json.loads(args.data)
            if args.delay > 0:
                queue.later(args.delay, args.job, data, args.queue)
            else:
                queue.push(args.job, data, args.queue)
            logger.info({"event": "job_pushed", "job": args.job, "queue": args.queue or queue.default})
        elif args.command == "size":
            print(queue.size(args.queue))
    except KeyboardInterrupt:
        logger.info({"event": "interrupted"})
    finally:
        queue.get_broker().close()
    return 0

if __name__ == "__main__":
    sys.exit(main())
