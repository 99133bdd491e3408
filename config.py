# config.py
import os

from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


# Content API endpoint and permanent auth token of the Hygraph project
HYGRAPH_ENDPOINT = os.getenv("HYGRAPH_ENDPOINT", "")
HYGRAPH_TOKEN = os.getenv("HYGRAPH_TOKEN", "")

# Max entries fetched per model per usage query
DEFAULT_LIMIT = _env_int("USAGE_LIMIT", 100)
# Containment search rounds (component embeds component embeds ...)
DEFAULT_MAX_HOPS = _env_int("USAGE_MAX_HOPS", 3)
# Nesting bound for synthesized selection sets
DEFAULT_MAX_DEPTH = _env_int("USAGE_MAX_DEPTH", 5)
DEFAULT_STAGE = os.getenv("USAGE_STAGE", "DRAFT")

# Pause between elements during a full scan, in seconds
SCAN_DELAY = _env_float("USAGE_SCAN_DELAY", 0.1)

REQUEST_TIMEOUT = _env_int("HYGRAPH_TIMEOUT", 30)
REQUEST_RETRIES = _env_int("HYGRAPH_RETRIES", 3)
