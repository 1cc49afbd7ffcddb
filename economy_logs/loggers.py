from economy_logs.chooseLogType import get_logger
from economy_logs.file import FileLogger
from economy_components.settings import ENV

server_logger = get_logger(mode=ENV, log_type="server")
economy_logger = get_logger(mode=ENV, log_type="economy")
auth_logger = get_logger(mode=ENV, log_type="auth")

# every committed balance/inventory mutation, always on disk
transaction_logger = FileLogger(log_type="transactions")
