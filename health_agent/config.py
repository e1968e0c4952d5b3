"""
Configuration constants and logging setup for Health Agent.
"""

import logging
import os
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv


def _load_local_env():
    """Load .env file for local development (skipped on Modal)."""
    env_file = Path(__file__).parent.parent / ".env"
    if env_file.exists():
        load_dotenv(env_file)


_load_local_env()

# Logging configuration
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("health_agent")

# Timezone used for the daily archive date label
TIMEZONE = ZoneInfo(os.environ.get("HEALTH_AGENT_TZ", "UTC"))

# Storage (Modal volume path by default)
DATA_DIR = Path(os.environ.get("DATA_DIR", "/data"))
DATABASE_FILE = DATA_DIR / "health.db"
DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{DATABASE_FILE}")
STORAGE_TIMEOUT_SECONDS = float(os.environ.get("STORAGE_TIMEOUT_SECONDS", "10"))

# Daily rollover: 12:25 UTC, Modal cron syntax
ROLLOVER_CRON = "25 12 * * *"
ROLLOVER_MODE_ATOMIC = "atomic"
ROLLOVER_MODE_SNAPSHOT = "snapshot"
ROLLOVER_MODE = os.environ.get("ROLLOVER_MODE", ROLLOVER_MODE_ATOMIC)

# Validation limits
MAX_COUNTER_VALUE = 1_000_000_000
MAX_WEIGHT_KG = 1000.0

# Telegram
TELEGRAM_API_BASE = "https://api.telegram.org"
TELEGRAM_MESSAGE_CHUNK = 4000  # Telegram has a 4096 char limit
