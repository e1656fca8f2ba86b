"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import time
from pathlib import Path
from typing import List, Sequence, Tuple

import pendulum
import yaml
from pendulum.tz.exceptions import InvalidTimezone
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .domain.exceptions import ConfigError
from .domain.models import BusinessCalendarPolicy


class DefaultsConfig(BaseModel):
    """Default settings for a search."""
    duration_minutes: int = 30
    open_time: time = time(9, 0)
    close_time: time = time(18, 0)
    max_results: int = 5
    resolution_minutes: int = 15
    fetch_timeout_seconds: float = 10.0

    @field_validator("duration_minutes", "max_results", "resolution_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure counts and durations are positive."""
        if value <= 0:
            raise ValueError(f"must be greater than zero, got {value}")
        return value

    @field_validator("fetch_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"fetch_timeout_seconds must be greater than zero, got {value}")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DefaultsConfig":
        """Ensure the business window opens before it closes."""
        if self.close_time <= self.open_time:
            raise ValueError("close_time must be later than open_time")
        return self


class GraphConfig(BaseModel):
    """Microsoft Graph calendar source settings."""
    endpoint: str = "https://graph.microsoft.com/v1.0"
    request_timeout_seconds: float = 30.0


class Colleague(BaseModel):
    """Colleague/Participant configuration."""
    name: str  # Used as alias
    email: str
    job_title: str = ""
    calendar_id: str = ""  # Optional: for mock data mapping

    def display_name(self) -> str:
        """Get display name, with job title when known."""
        if self.job_title:
            return f"{self.name} ({self.job_title})"
        return self.name


class AppConfig(BaseModel):
    """Application configuration."""
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    timezone: str = "Asia/Tokyo"
    colleagues: List[Colleague] = Field(default_factory=list)
    business_days: List[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4])  # Monday - Friday

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except (InvalidTimezone, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("business_days")
    @classmethod
    def validate_business_days(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"business_days must be between 0 and 6, got {invalid_days}")
        # Preserve order while removing duplicates
        seen: set[int] = set()
        deduped: List[int] = []
        for day in value:
            if day not in seen:
                deduped.append(day)
                seen.add(day)
        return deduped

    @field_validator("colleagues")
    @classmethod
    def validate_colleagues(cls, value: List[Colleague]) -> List[Colleague]:
        """Ensure colleague aliases and emails are unique."""
        seen_names: set[str] = set()
        seen_emails: set[str] = set()
        for colleague in value:
            name_key = colleague.name.lower()
            email_key = colleague.email.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate colleague name detected: {colleague.name}")
            if email_key in seen_emails:
                raise ValueError(f"Duplicate colleague email detected: {colleague.email}")
            seen_names.add(name_key)
            seen_emails.add(email_key)
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
            ConfigError: If the file is missing, unreadable or invalid
        """
        if not config_path.exists():
            raise ConfigError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping at the root level.")

        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration in {config_path}:\n{exc}") from exc

    def business_policy(self) -> BusinessCalendarPolicy:
        """Build the business calendar policy described by this config."""
        return BusinessCalendarPolicy(
            business_days=tuple(self.business_days),
            open_time=self.defaults.open_time,
            close_time=self.defaults.close_time,
            timezone=self.timezone,
        )

    def find_colleague_by_name(self, name: str) -> Colleague | None:
        """Find a colleague by their name (alias)."""
        for colleague in self.colleagues:
            if colleague.name.lower() == name.lower():
                return colleague
        return None

    def find_colleague_by_email(self, email: str) -> Colleague | None:
        """Find a colleague by their email."""
        for colleague in self.colleagues:
            if colleague.email.lower() == email.lower():
                return colleague
        return None

    def display_name_for(self, email: str) -> str:
        """Human readable name for an attendee, falling back to the address."""
        colleague = self.find_colleague_by_email(email)
        return colleague.display_name() if colleague else email

    def resolve_participant(self, identifier: str) -> str:
        """
        Resolve a participant identifier (name/alias or email) to an email address.

        Raises:
            ValueError: If identifier cannot be resolved
        """
        identifier = identifier.strip()

        # Check if it's an email (contains @)
        if "@" in identifier:
            return identifier.lower()

        # Display names carry the job title: "tanaka (Project Manager)"
        name = identifier.replace("（", "(").split("(")[0].strip()

        colleague = self.find_colleague_by_name(name)
        if colleague:
            return colleague.email.lower()

        raise ValueError(
            f"Unknown participant identifier: '{identifier}'. "
            f"Use an email address or a configured name."
        )

    def resolve_participants(self, identifiers: Sequence[str]) -> Tuple[List[str], List[str]]:
        """
        Resolve multiple participant identifiers, ensuring uniqueness.

        Returns:
            Tuple of (unique email addresses in input order, unknown identifiers)
        """
        resolved_emails: List[str] = []
        unknown_identifiers: List[str] = []

        for identifier in identifiers:
            try:
                email = self.resolve_participant(identifier)
            except ValueError:
                unknown_identifiers.append(identifier)
                continue

            if email not in resolved_emails:
                resolved_emails.append(email)

        return resolved_emails, unknown_identifiers


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        config_path = Path(__file__).parent.parent / "config.yaml"

    return config_path
