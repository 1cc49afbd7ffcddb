from abc import ABC, abstractmethod

class Logger(ABC):
    """Structured event logger: `logger.info("event_name", key=value, ...)`."""

    @abstractmethod
    def info(self, msg: str, **data): ...

    @abstractmethod
    def debug(self, msg: str, **data): ...

    @abstractmethod
    def warning(self, msg: str, **data): ...

    @abstractmethod
    def error(self, msg: str, **data): ...

    def bind(self, **context) -> "BoundLogger":
        return BoundLogger(self, context)


class SinkLogger(Logger):
    """A logger that writes somewhere; subclasses only implement `_emit`."""

    def __init__(self, log_type="server"):
        self.log_type = log_type

    @abstractmethod
    def _emit(self, level: str, msg: str, data: dict): ...

    def info(self, msg, **data):
        self._emit("INFO", msg, data)

    def debug(self, msg, **data):
        self._emit("DEBUG", msg, data)

    def warning(self, msg, **data):
        self._emit("WARN", msg, data)

    def error(self, msg, **data):
        self._emit("ERROR", msg, data)


class BoundLogger(Logger):
    """Wraps a logger and merges fixed context into every event."""

    def __init__(self, inner: Logger, context: dict):
        self.inner = inner
        self.context = context

    def bind(self, **context) -> "BoundLogger":
        return BoundLogger(self.inner, {**self.context, **context})

    def info(self, msg, **data):
        self.inner.info(msg, **{**self.context, **data})

    def debug(self, msg, **data):
        self.inner.debug(msg, **{**self.context, **data})

    def warning(self, msg, **data):
        self.inner.warning(msg, **{**self.context, **data})

    def error(self, msg, **data):
        self.inner.error(msg, **{**self.context, **data})
