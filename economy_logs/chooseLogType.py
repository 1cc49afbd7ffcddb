from economy_logs.stdout import StdoutLogger
from economy_logs.file import FileLogger
from economy_logs.json import JSONLogger
from economy_logs.composite import CompositeLogger

def get_logger(mode="dev", log_type="server"):
    # prod keeps a file per log type and mirrors to stdout as JSON
    if mode == "prod":
        return CompositeLogger(
            FileLogger(log_type=log_type),
            JSONLogger(log_type=log_type)
        )
    return StdoutLogger(log_type=log_type)
