from economy_logs.base import SinkLogger
from datetime import datetime, timezone

class StdoutLogger(SinkLogger):
    """Human-readable one-liners for local runs."""

    def _emit(self, level, msg, data):
        ts = datetime.now(timezone.utc).isoformat(timespec="seconds")
        extras = " ".join(f"{key}={value!r}" for key, value in data.items())
        print(f"[{ts}] [{self.log_type}] {level} {msg} {extras}".rstrip())
