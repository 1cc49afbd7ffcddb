from economy_logs.base import Logger

class CompositeLogger(Logger):
    """Fans every event out to each wrapped logger, in order."""

    def __init__(self, *loggers: Logger):
        self.loggers = loggers

    def _fanout(self, level, msg, data):
        for logger in self.loggers:
            getattr(logger, level)(msg, **data)

    def info(self, msg, **data):
        self._fanout("info", msg, data)

    def debug(self, msg, **data):
        self._fanout("debug", msg, data)

    def warning(self, msg, **data):
        self._fanout("warning", msg, data)

    def error(self, msg, **data):
        self._fanout("error", msg, data)
