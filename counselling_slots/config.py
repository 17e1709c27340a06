"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from datetime import time
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import DEFAULT_SERVICE_DURATIONS, OperatingWindow, ServiceCatalog, ServiceType

# Environment variable -> operating_hours field
ENV_OVERRIDES: Dict[str, str] = {
    "OPERATING_HOURS_START": "start",
    "OPERATING_HOURS_END": "end",
    "LUNCH_BREAK_START": "lunch_start",
    "LUNCH_BREAK_END": "lunch_end",
    "SESSION_BUFFER_MINUTES": "buffer_minutes",
}


class OperatingHoursConfig(BaseModel):
    """Daily opening hours, lunch break and buffer between sessions."""
    start: time = time(8, 0)
    end: time = time(18, 0)
    lunch_start: time = time(12, 0)
    lunch_end: time = time(13, 0)
    buffer_minutes: int = 10

    @field_validator("buffer_minutes")
    @classmethod
    def validate_buffer(cls, value: int) -> int:
        """Ensure the buffer is not negative."""
        if value < 0:
            raise ValueError(f"buffer_minutes must not be negative, got {value}")
        return value

    @model_validator(mode="after")
    def validate_order(self) -> "OperatingHoursConfig":
        """Ensure the window opens before it closes and lunch lies inside it."""
        if self.end <= self.start:
            raise ValueError("end must be later than start")
        if not self.start <= self.lunch_start < self.lunch_end <= self.end:
            raise ValueError("lunch break must lie within the operating hours")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Berlin"
    operating_hours: OperatingHoursConfig = Field(default_factory=OperatingHoursConfig)
    services: Dict[ServiceType, int] = Field(
        default_factory=lambda: dict(DEFAULT_SERVICE_DURATIONS)
    )
    rest_days: List[int] = Field(default_factory=lambda: [6])  # Sunday
    booking_window_days: int = 30
    bookings_file: Optional[Path] = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            pendulum.timezone(value)
        except ValueError:
            raise ValueError(f"Unknown timezone: '{value}'") from None
        return value

    @field_validator("services")
    @classmethod
    def validate_services(cls, value: Dict[ServiceType, int]) -> Dict[ServiceType, int]:
        """Fill in unlisted services with their defaults and check durations."""
        merged = dict(DEFAULT_SERVICE_DURATIONS)
        merged.update(value)
        invalid = [service.value for service, minutes in merged.items() if minutes <= 0]
        if invalid:
            raise ValueError(f"Service durations must be positive: {', '.join(invalid)}")
        return merged

    @field_validator("rest_days")
    @classmethod
    def validate_rest_days(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"rest_days must be between 0 and 6, got {invalid_days}")
        # Preserve order while removing duplicates
        seen: set[int] = set()
        deduped: List[int] = []
        for day in value:
            if day not in seen:
                deduped.append(day)
                seen.add(day)
        return deduped

    @field_validator("booking_window_days")
    @classmethod
    def validate_booking_window(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("booking_window_days must be greater than zero")
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

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

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)

        # Relative booking files live next to the config file
        if config.bookings_file is not None and not config.bookings_file.is_absolute():
            config = config.model_copy(
                update={"bookings_file": config_path.parent / config.bookings_file}
            )

        return config

    def with_env_overrides(self, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """
        Apply operating-hour overrides from environment variables.

        Args:
            environ: Mapping to read from, defaults to ``os.environ``

        Returns:
            A new AppConfig; this one is left untouched

        Raises:
            ValueError: If an override does not validate
        """
        environ = os.environ if environ is None else environ

        overrides = {
            field: environ[name]
            for name, field in ENV_OVERRIDES.items()
            if environ.get(name)
        }
        if not overrides:
            return self

        hours = self.operating_hours.model_dump()
        hours.update(overrides)
        return self.model_copy(
            update={"operating_hours": OperatingHoursConfig.model_validate(hours)}
        )

    def get_operating_window(self) -> OperatingWindow:
        """Build the immutable operating window handed to the slot generator."""
        hours = self.operating_hours
        return OperatingWindow(
            start=hours.start,
            end=hours.end,
            lunch_start=hours.lunch_start,
            lunch_end=hours.lunch_end,
            buffer_minutes=hours.buffer_minutes,
            rest_days=frozenset(self.rest_days),
        )

    def get_service_catalog(self) -> ServiceCatalog:
        return ServiceCatalog(durations=self.services)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
