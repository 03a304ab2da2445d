"""
Configuration for the cycle calculator.

Configuration is read from the environment exactly once, at process entry,
into an immutable ``TrackerConfig`` that is passed to every component.

Example:
    config = TrackerConfig.from_env()
    store = DynamoRecordStore(get_dynamo(config.table_name), config.tracker_id)
    CycleCalculator(store, config).run(now)
"""
import os
from enum import Enum
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from src.services.exceptions import ConfigurationError

FALLBACK_CYCLE_DAYS = 28


class AveragingStrategy(str, Enum):
    """
    How rolling averages are computed.

    FULL_HISTORY averages every non-zero value ever recorded.
    TRAILING_WINDOW keeps only in-bounds cycle values and averages the most
    recent ``trailing_window`` of them.
    """
    FULL_HISTORY = "full_history"
    TRAILING_WINDOW = "trailing_window"


class PropertyMap(BaseModel):
    """
    Names of the record properties read and written by the calculator.
    """
    model_config = ConfigDict(frozen=True)

    title: str = "Title"
    kind: str = "Kind"
    date: str = "Date"
    cycle_days: str = "Cycle days"
    avg_cycle: str = "Average cycle"
    bleed_days: str = "Bleed days"
    avg_bleed: str = "Average bleed"
    next_period: str = "Next period"
    ovulation: str = "Ovulation"
    error: str = "Input error"
    template_error: str = "Template mismatch"
    latest_avg_cycle: str = "Latest average cycle"
    latest_avg_bleed: str = "Latest average bleed"
    latest_cycle: str = "Latest cycle"
    latest_bleed: str = "Latest bleed"
    latest_start: str = "Latest start"
    latest_end: str = "Latest end"
    last_calculated_at: str = "Last calculated at"
    last_triggered_at: str = "Last triggered at"


class KindLabels(BaseModel):
    """
    Select-option labels used for each event kind.
    """
    model_config = ConfigDict(frozen=True)

    start: str = "Start"
    end: str = "End"
    planned_period: str = "Planned period"
    planned_ovulation: str = "Planned ovulation"
    daily_note: str = "Daily note"


# Environment variable suffix -> PropertyMap field
_PROPERTY_ENV = {
    "TITLE": "title",
    "KIND": "kind",
    "DATE": "date",
    "CYCLE_DAYS": "cycle_days",
    "AVG_CYCLE": "avg_cycle",
    "BLEED_DAYS": "bleed_days",
    "AVG_BLEED": "avg_bleed",
    "NEXT_PERIOD": "next_period",
    "OVULATION": "ovulation",
    "ERROR": "error",
    "TEMPLATE_ERROR": "template_error",
    "LATEST_AVG_CYCLE": "latest_avg_cycle",
    "LATEST_AVG_BLEED": "latest_avg_bleed",
    "LATEST_CYCLE": "latest_cycle",
    "LATEST_BLEED": "latest_bleed",
    "LATEST_START": "latest_start",
    "LATEST_END": "latest_end",
    "LAST_CALCULATED_AT": "last_calculated_at",
    "LAST_TRIGGERED_AT": "last_triggered_at",
}

_KIND_ENV = {
    "START": "start",
    "END": "end",
    "PLANNED_PERIOD": "planned_period",
    "PLANNED_OVULATION": "planned_ovulation",
    "DAILY_NOTE": "daily_note",
}

_INT_ENV = {
    "LUTEAL_DAYS": "luteal_days",
    "DEFAULT_CYCLE": "default_cycle",
    "MIN_TRIGGER_INTERVAL_SEC": "min_trigger_interval_sec",
    "MORNING_END_HOUR": "morning_end_hour",
    "AFTERNOON_END_HOUR": "afternoon_end_hour",
    "CYCLE_MIN_DAYS": "cycle_min_days",
    "CYCLE_MAX_DAYS": "cycle_max_days",
    "TRAILING_WINDOW_SIZE": "trailing_window",
}

_BOOL_ENV = {
    "CREATE_PLAN_RECORDS": "create_plan_records",
    "STRICT_TEMPLATES": "strict_templates",
}


class TrackerConfig(BaseModel):
    """
    Immutable calculator configuration.
    """
    model_config = ConfigDict(frozen=True)

    table_name: str = Field(..., min_length=1)
    tracker_id: str = Field(..., min_length=1)

    luteal_days: int = Field(14, ge=0)
    default_cycle: int = Field(FALLBACK_CYCLE_DAYS, ge=0)
    create_plan_records: bool = False
    event_reason: str = ""
    min_trigger_interval_sec: int = Field(45, ge=0)
    strict_templates: bool = False
    morning_end_hour: int = Field(10, ge=0, le=23)
    afternoon_end_hour: int = Field(16, ge=0, le=23)
    reference_timezone: str = "Asia/Tokyo"
    state_title: str = "Internal: state"

    averaging: AveragingStrategy = AveragingStrategy.FULL_HISTORY
    cycle_min_days: int = Field(17, ge=0)
    cycle_max_days: int = Field(60, ge=1)
    trailing_window: int = Field(6, ge=1)

    properties: PropertyMap = Field(default_factory=PropertyMap)
    kinds: KindLabels = Field(default_factory=KindLabels)

    @model_validator(mode="after")
    def _check_bounds(self) -> "TrackerConfig":
        if self.cycle_min_days > self.cycle_max_days:
            raise ValueError("cycle_min_days must not exceed cycle_max_days")
        try:
            ZoneInfo(self.reference_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone {self.reference_timezone!r}")
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TrackerConfig":
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read from, defaults to ``os.environ``

        Returns:
            TrackerConfig instance

        Raises:
            ConfigurationError: If TRACKER_TABLE_NAME or TRACKER_ID is not set,
                or a value cannot be parsed
        """
        if environ is None:
            environ = os.environ

        missing = [name for name in ("TRACKER_TABLE_NAME", "TRACKER_ID") if not environ.get(name)]
        if missing:
            raise ConfigurationError(
                f"{', '.join(missing)} environment variable(s) not set. "
                "These must name the record table and the tracker to calculate."
            )

        values = {
            "table_name": environ["TRACKER_TABLE_NAME"],
            "tracker_id": environ["TRACKER_ID"],
            "event_reason": environ.get("EVENT_REASON", "").strip().lower(),
        }
        for env_name, field in _INT_ENV.items():
            if environ.get(env_name):
                values[field] = _parse_int(env_name, environ[env_name])
        for env_name, field in _BOOL_ENV.items():
            if env_name in environ:
                values[field] = environ[env_name].strip().lower() == "true"
        if environ.get("REFERENCE_TIMEZONE"):
            values["reference_timezone"] = environ["REFERENCE_TIMEZONE"]
        if environ.get("STATE_TITLE"):
            values["state_title"] = environ["STATE_TITLE"]
        if environ.get("AVERAGING_STRATEGY"):
            values["averaging"] = environ["AVERAGING_STRATEGY"].strip().lower()

        values["properties"] = {
            field: environ[f"PROP_{suffix}"]
            for suffix, field in _PROPERTY_ENV.items()
            if environ.get(f"PROP_{suffix}")
        }
        values["kinds"] = {
            field: environ[f"KIND_{suffix}"]
            for suffix, field in _KIND_ENV.items()
            if environ.get(f"KIND_{suffix}")
        }

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
