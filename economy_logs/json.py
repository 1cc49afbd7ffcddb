from economy_logs.base import SinkLogger
from datetime import datetime, timezone
import json

class JSONLogger(SinkLogger):
    """One JSON document per event on stdout, event fields nested under `data`."""

    def _emit(self, level, msg, data):
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "log_type": self.log_type,
            "level": level,
            "event": msg,
            "data": data,
        }
        print(json.dumps(record, default=str))
