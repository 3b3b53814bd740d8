"""
Application settings management.

Settings are loaded from environment variables with .env file support.
Booking policy and pricing tables are loaded from a versioned YAML file
and injected into the services that need them.
All configuration is validated using Pydantic.
"""

from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.exceptions import ConfigurationError

APP_VERSION = "0.1.0"


class Settings(BaseSettings):
    """
    Application settings loaded from environment.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================

    config_dir: Path = Field(
        default=Path("config"),
        description="Directory containing YAML configuration files",
    )
    data_dir: Path = Field(
        default=Path("data"), description="Directory for database and other data files"
    )

    # ==========================================================================
    # Database
    # ==========================================================================

    database_path: Path = Field(
        default=Path("data/booking.db"), description="Path to SQLite database file"
    )
    sqlite_busy_timeout: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="Seconds a writer waits for the database lock before giving up",
    )

    booking_config_path: Optional[Path] = Field(
        default=None,
        description="Override for config/booking_config.yaml",
    )

    # ==========================================================================
    # Logging
    # ==========================================================================

    log_sessions_to_keep: int = Field(
        default=5, ge=1, le=100, description="Number of log files to retain"
    )

    # ==========================================================================
    # Server Configuration
    # ==========================================================================

    host: str = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    debug: bool = Field(default=False, description="Enable debug mode")


# ============================================================================
# Booking Configuration (from YAML)
# ============================================================================


class LanguageTiersConfig(BaseModel):
    """Language codes grouped by relative rarity."""

    common: List[str] = Field(
        default_factory=lambda: ["en", "es", "fr", "de", "it", "pt", "ru", "zh", "ja"]
    )
    specialized: List[str] = Field(
        default_factory=lambda: [
            "ko", "ar", "hi", "th", "vi", "tr", "nl", "sv", "da",
            "no", "fi", "pl", "cs", "hu", "ro", "bg", "hr", "el",
        ]
    )
    rare: List[str] = Field(
        default_factory=lambda: [
            "he", "fa", "ur", "bn", "ta", "te", "ml", "kn", "gu",
            "mr", "ne", "si", "my", "km", "lo", "ka", "am", "sw",
            "zu", "af", "sq", "eu", "be", "bs", "ca", "cy", "eo",
        ]
    )

    @model_validator(mode="after")
    def tiers_are_disjoint(self) -> "LanguageTiersConfig":
        """A language code may belong to one tier only."""
        seen: Dict[str, str] = {}
        for tier in ("common", "specialized", "rare"):
            for code in getattr(self, tier):
                if code in seen:
                    raise ValueError(
                        f"Language '{code}' listed in both {seen[code]} and {tier}"
                    )
                seen[code] = tier
        return self

    def all_codes(self) -> frozenset:
        return frozenset(self.common) | frozenset(self.specialized) | frozenset(self.rare)


class PricingConfig(BaseModel):
    """
    Versioned pricing tables.

    A session records the version it was priced with so a price can be
    reproduced later from the same snapshot.
    """

    model_config = {"frozen": True}

    version: str = Field(default="2024-01", min_length=1)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    language_tiers: LanguageTiersConfig = Field(default_factory=LanguageTiersConfig)
    base_rates: Dict[str, Decimal] = Field(
        default_factory=lambda: {
            "common": Decimal("0.12"),
            "specialized": Decimal("0.18"),
            "rare": Decimal("0.25"),
        },
        description="Per-word base rate by language tier",
    )
    urgency_multipliers: Dict[str, Decimal] = Field(
        default_factory=lambda: {
            "standard": Decimal("1.0"),
            "rush": Decimal("1.5"),
            "urgent": Decimal("2.0"),
            "emergency": Decimal("3.0"),
        }
    )
    content_type_multipliers: Dict[str, Decimal] = Field(
        default_factory=lambda: {
            "general": Decimal("1.0"),
            "document": Decimal("1.1"),
            "website": Decimal("1.2"),
            "marketing": Decimal("1.3"),
            "technical": Decimal("1.4"),
            "legal": Decimal("1.6"),
            "medical": Decimal("1.8"),
            "academic": Decimal("1.3"),
        }
    )
    certification_fee: Decimal = Field(default=Decimal("50.00"), ge=0)
    minimum_project_fee: Decimal = Field(default=Decimal("25.00"), ge=0)
    minimum_hourly_rate: Decimal = Field(
        default=Decimal("10.00"), gt=0, description="Floor for any hourly rate"
    )

    @field_validator("base_rates")
    @classmethod
    def base_rates_cover_tiers(cls, v: Dict[str, Decimal]) -> Dict[str, Decimal]:
        missing = {"common", "specialized", "rare"} - set(v)
        if missing:
            raise ValueError(f"Missing base rates for tiers: {sorted(missing)}")
        if any(rate <= 0 for rate in v.values()):
            raise ValueError("Base rates must be positive")
        return v

    @field_validator("urgency_multipliers", "content_type_multipliers")
    @classmethod
    def multipliers_positive(cls, v: Dict[str, Decimal]) -> Dict[str, Decimal]:
        if any(m <= 0 for m in v.values()):
            raise ValueError("Multipliers must be positive")
        return v


class PolicyConfig(BaseModel):
    """Booking lifecycle rules."""

    model_config = {"frozen": True}

    standard_notice_hours: float = Field(
        default=24, ge=0, description="Minimum notice to cancel or reschedule"
    )
    emergency_notice_hours: float = Field(
        default=2, ge=0, description="Minimum notice for emergency sessions"
    )
    max_reschedules: int = Field(default=3, ge=0)
    max_match_candidates: int = Field(
        default=10, ge=1, le=100, description="Default size of a ranked candidate list"
    )
    min_session_duration: int = Field(
        default=1, ge=1, description="Shortest bookable session in minutes"
    )
    min_interpreter_languages: int = Field(default=2, ge=1)
    min_session_type_duration: int = Field(
        default=30, ge=1, description="Floor for an interpreter's per-type minimum duration"
    )


class BookingConfig(BaseModel):
    """
    Complete booking configuration loaded from booking_config.yaml.
    """

    pricing: PricingConfig = Field(default_factory=PricingConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)


def load_booking_config(config_path: Optional[Path] = None) -> BookingConfig:
    """
    Load booking configuration from YAML file.

    Args:
        config_path: Path to booking_config.yaml. If None, uses default path.

    Returns:
        BookingConfig with validated settings

    Raises:
        ConfigurationError: If the file exists but fails validation
    """
    if config_path is None:
        # Default path: config/booking_config.yaml relative to project root
        current = Path(__file__).resolve().parent.parent.parent
        check_path = current / "config" / "booking_config.yaml"
        if check_path.exists():
            config_path = check_path
        else:
            cwd_config = Path.cwd() / "config" / "booking_config.yaml"
            if not cwd_config.exists():
                return BookingConfig()
            config_path = cwd_config

    config_path = Path(config_path).resolve()

    if not config_path.exists():
        return BookingConfig()

    with open(str(config_path)) as f:
        config_data = yaml.safe_load(f)

    if not config_data:
        return BookingConfig()

    try:
        return BookingConfig(**config_data)
    except ValueError as e:
        raise ConfigurationError(f"Invalid booking config {config_path}: {e}") from e


# Global settings instance
settings = Settings()

# Global booking config instance
booking_config = load_booking_config(settings.booking_config_path)
