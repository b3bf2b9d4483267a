"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List

import yaml
from pydantic import BaseModel, Field, field_validator

from .services.cache import MAX_TTL_SECONDS


class DefaultsConfig(BaseModel):
    """Default settings for slot lookups."""
    duration_minutes: int = 30
    booking_lead_minutes: int = 5

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure service duration is positive."""
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value

    @field_validator("booking_lead_minutes")
    @classmethod
    def validate_lead(cls, value: int) -> int:
        if value < 0:
            raise ValueError("booking_lead_minutes must not be negative")
        return value


class Barber(BaseModel):
    """Barber configuration."""
    name: str  # Used as alias
    barber_id: str


class AppConfig(BaseModel):
    """Application configuration."""
    supabase_url: str = ""
    supabase_key: str = ""
    timezone: str = "America/New_York"
    cache_ttl_seconds: float = MAX_TTL_SECONDS
    request_timeout_seconds: float = 10
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    barbers: List[Barber] = Field(default_factory=list)

    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_cache_ttl(cls, value: float) -> float:
        """Slot lists must never be served from data older than 30 seconds."""
        if not 0 <= value <= MAX_TTL_SECONDS:
            raise ValueError(
                f"cache_ttl_seconds must be between 0 and {MAX_TTL_SECONDS:g}, got {value}"
            )
        return value

    @field_validator("request_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("request_timeout_seconds must be greater than zero")
        return value

    @field_validator("barbers")
    @classmethod
    def validate_barbers(cls, value: List[Barber]) -> List[Barber]:
        """Ensure barber aliases and ids are unique."""
        seen_names: set[str] = set()
        seen_ids: set[str] = set()
        for barber in value:
            name_key = barber.name.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate barber name detected: {barber.name}")
            if barber.barber_id in seen_ids:
                raise ValueError(f"Duplicate barber id detected: {barber.barber_id}")
            seen_names.add(name_key)
            seen_ids.add(barber.barber_id)
        return value

    @property
    def has_database(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

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

        return cls(**data)

    def find_barber_by_name(self, name: str) -> Barber | None:
        """Find a barber by their name (alias)."""
        for barber in self.barbers:
            if barber.name.lower() == name.lower():
                return barber
        return None

    def resolve_barber(self, identifier: str) -> str:
        """
        Resolve a barber identifier (name/alias or id) to a barber id.

        Unknown identifiers are passed through as raw ids, so barbers that
        are not listed in the config can still be queried.
        """
        identifier = identifier.strip()
        if not identifier:
            raise ValueError("Barber identifier must not be empty.")

        barber = self.find_barber_by_name(identifier)
        if barber:
            return barber.barber_id

        return identifier


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


def load_config(config_path: Path | None = None, *, allow_missing: bool = False) -> AppConfig:
    """
    Load the configuration, optionally falling back to defaults.

    ``allow_missing`` is used by mock mode, which needs no database
    credentials.
    """
    path = config_path or get_default_config_path()
    if allow_missing and config_path is None and not path.exists():
        return AppConfig()
    return AppConfig.load_from_yaml(path)
