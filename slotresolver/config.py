"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.boundaries import BOOKING_TIME_UNITS
from .domain.clock import is_valid_timezone


class BookingConfig(BaseModel):
    """Settings for booking time candidates."""
    booking_length_minutes: Optional[int] = 60
    start_time_interval: str = "hour"
    seats_enabled: bool = False
    min_seats: int = 1

    @field_validator("booking_length_minutes")
    @classmethod
    def validate_booking_length(cls, value: Optional[int]) -> Optional[int]:
        """Ensure a fixed booking length is positive (None means time-range bookings)."""
        if value is not None and value <= 0:
            raise ValueError("booking_length_minutes must be greater than zero")
        return value

    @field_validator("start_time_interval")
    @classmethod
    def validate_start_time_interval(cls, value: str) -> str:
        """Ensure the interval is a known booking time unit."""
        if value not in BOOKING_TIME_UNITS:
            raise ValueError(
                f"start_time_interval must be one of {', '.join(BOOKING_TIME_UNITS)}, got {value!r}"
            )
        return value

    @field_validator("min_seats")
    @classmethod
    def validate_min_seats(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"min_seats must not be negative, got {value}")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Etc/UTC"
    first_day_of_week: int = 1  # 0=Sunday .. 6=Saturday
    day_count_available_for_booking: int = 90
    booking: BookingConfig = Field(default_factory=BookingConfig)
    data_file: Optional[Path] = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the time zone is a known IANA key."""
        if not is_valid_timezone(value):
            raise ValueError(f"Given time zone key ({value!r}) is not a valid IANA time zone")
        return value

    @field_validator("first_day_of_week")
    @classmethod
    def validate_first_day_of_week(cls, value: int) -> int:
        if value not in range(7):
            raise ValueError(f"first_day_of_week must be between 0 and 6, got {value}")
        return value

    @field_validator("day_count_available_for_booking")
    @classmethod
    def validate_day_count(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("day_count_available_for_booking must be greater than zero")
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Relative ``data_file`` paths are resolved against the config file's directory.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        config = cls(**data)
        if config.data_file is not None and not config.data_file.is_absolute():
            config = config.model_copy(update={"data_file": config_path.parent / config.data_file})
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of slotresolver/)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
