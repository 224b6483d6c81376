from typing import Any, Callable, Dict, List, Optional

from servicebus_queue.queue.errors import UnknownJobError

Handler = Callable[[Any, Any], Any]

class JobRegistry:
    """
    Maps job names to handlers.

        registry = JobRegistry()

        @registry.task("emails.send")
        def send_email(job, data):
            ...

        queue.push(send_email, {"to": "someone@example.com"})
    """
    def __init__(self):
        self._handlers: Dict[str, Handler] = {}

    def register(self, name: str, handler: Handler) -> Handler:
        self._handlers[name] = handler
        return handler

    def task(self, name: Optional[str] = None):
        def decorator(fn: Handler) -> Handler:
            job_name = name or f"{fn.__module__}.{fn.__qualname__}"
            fn.job_name = job_name
            return self.register(job_name, fn)
        return decorator

    def resolve(self, name: str) -> Handler:
        try:
            return self._handlers[name]
        except KeyError:
            raise UnknownJobError(name) from None

    def names(self) -> List[str]:
        return sorted(self._handlers)

    def __contains__(self, name: str) -> bool:
        return name in self._handlers
