from economy_logs.base import SinkLogger
from economy_components import settings
from datetime import datetime, timezone
from pathlib import Path
import json

class FileLogger(SinkLogger):
    """Appends one flat JSON object per event to `<base_path>/<log_type>.log`."""

    def __init__(self, log_type="server", base_path=None):
        super().__init__(log_type)
        self.path = Path(base_path or settings.LOG_DIR) / f"{log_type}.log"
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _emit(self, level, msg, data):
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "log_type": self.log_type,
            "level": level,
            "event": msg,
            **data,
        }
        with open(self.path, "a") as f:
            f.write(json.dumps(record, default=str) + "\n")
