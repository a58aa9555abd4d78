"""Configuration management"""
import os
from dotenv import load_dotenv
import pytz

from stepledger.exceptions import ConfigurationError

load_dotenv()


def _parse_int_list(raw: str) -> list[int]:
    return [int(part) for part in raw.split(",") if part.strip()]


# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Calendar days are local to this IANA timezone (e.g. "Asia/Tokyo")
LOCAL_TIMEZONE: str = os.getenv("LOCAL_TIMEZONE", "UTC")

# Step pipeline
DEFAULT_STEP_GOAL: int = int(os.getenv("DEFAULT_STEP_GOAL", "7500"))
SYNC_WINDOW_DAYS: int = int(os.getenv("SYNC_WINDOW_DAYS", "7"))
QUERY_DELAY_SECONDS: float = float(os.getenv("QUERY_DELAY_SECONDS", "0.75"))
REPAIR_COOLDOWN_SECONDS: float = float(os.getenv("REPAIR_COOLDOWN_SECONDS", "300"))
RECONCILE_TOLERANCE: int = int(os.getenv("RECONCILE_TOLERANCE", "10"))

# Anomaly detection
# - ANOMALY_SENTINELS: comma-separated step values never trusted as real data
# - ANOMALY_IDENTICAL_DAYS: flag a value repeated on at least this many days of a window
ANOMALY_DETECTION_ENABLED: bool = os.getenv("ANOMALY_DETECTION_ENABLED", "true").lower() == "true"
ANOMALY_SENTINELS: list[int] = _parse_int_list(os.getenv("ANOMALY_SENTINELS", "210"))
ANOMALY_IDENTICAL_DAYS: int = int(os.getenv("ANOMALY_IDENTICAL_DAYS", "4"))

# Gamification
MONTHLY_BONUS_ALLOTMENT: int = int(os.getenv("MONTHLY_BONUS_ALLOTMENT", "30"))
MAX_STREAK_PROTECTIONS: int = int(os.getenv("MAX_STREAK_PROTECTIONS", "3"))
PROTECTION_REFILL_DAYS: int = int(os.getenv("PROTECTION_REFILL_DAYS", "14"))
PROTECTION_COOLDOWN_DAYS: int = int(os.getenv("PROTECTION_COOLDOWN_DAYS", "5"))
ENABLE_SPECIAL_BADGES: bool = os.getenv("ENABLE_SPECIAL_BADGES", "true").lower() == "true"

# Monitoring
ENABLE_PROMETHEUS: bool = os.getenv("ENABLE_PROMETHEUS", "true").lower() == "true"


# Validation
def validate_config() -> None:
    """Validate configuration values"""
    try:
        pytz.timezone(LOCAL_TIMEZONE)
    except pytz.exceptions.UnknownTimeZoneError:
        raise ConfigurationError(
            f"Invalid timezone: '{LOCAL_TIMEZONE}'. Use an IANA timezone (e.g. 'Asia/Tokyo')",
            config_key="LOCAL_TIMEZONE",
        )
    if LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigurationError(f"Invalid LOG_LEVEL: '{LOG_LEVEL}'", config_key="LOG_LEVEL")
    if DEFAULT_STEP_GOAL <= 0:
        raise ConfigurationError("DEFAULT_STEP_GOAL must be positive", config_key="DEFAULT_STEP_GOAL")
    if SYNC_WINDOW_DAYS < 1:
        raise ConfigurationError("SYNC_WINDOW_DAYS must be at least 1", config_key="SYNC_WINDOW_DAYS")
    if QUERY_DELAY_SECONDS < 0:
        raise ConfigurationError("QUERY_DELAY_SECONDS cannot be negative", config_key="QUERY_DELAY_SECONDS")
    if RECONCILE_TOLERANCE < 0:
        raise ConfigurationError("RECONCILE_TOLERANCE cannot be negative", config_key="RECONCILE_TOLERANCE")
    if ANOMALY_IDENTICAL_DAYS < 3:
        # Two equal days are a common coincidence on real devices
        raise ConfigurationError(
            "ANOMALY_IDENTICAL_DAYS must be at least 3",
            config_key="ANOMALY_IDENTICAL_DAYS",
        )
    if MAX_STREAK_PROTECTIONS < 1:
        raise ConfigurationError("MAX_STREAK_PROTECTIONS must be at least 1", config_key="MAX_STREAK_PROTECTIONS")
    if MONTHLY_BONUS_ALLOTMENT < 1:
        raise ConfigurationError("MONTHLY_BONUS_ALLOTMENT must be at least 1", config_key="MONTHLY_BONUS_ALLOTMENT")
