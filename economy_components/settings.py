import os
from pathlib import Path

# runtime configuration, all overridable from the environment
ENV = os.getenv("ENV", "dev")

DB_PATH = Path(os.getenv("TRADEUP_DB_PATH", "data/db.sqlite"))
SEED_PATH = Path(os.getenv("TRADEUP_SEED_PATH", "data/skins.json"))
LOG_DIR = Path(os.getenv("TRADEUP_LOG_DIR", "logs"))

CASE_COST = float(os.getenv("TRADEUP_CASE_COST", "5.0"))
STARTING_BALANCE = 100.0
TRADEUP_INPUT_COUNT = 10
