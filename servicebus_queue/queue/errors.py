class QueueError(Exception):
    pass

class ConfigurationError(QueueError):
    pass

class UnknownJobError(QueueError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No handler registered for job '{name}'")

class JobAlreadySettledError(QueueError):
    pass
