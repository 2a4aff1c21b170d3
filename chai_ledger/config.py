"""
Configuration management for the chai ledger engine.

Loads settings from environment variables with sensible defaults.
Builders never read the environment themselves; values from this config
are passed into them explicitly (country code, currency symbol, ...).
"""
from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _parse_int_env(name: str, default: int) -> int:
    """Parse an integer environment variable, falling back to default."""
    env_val = os.getenv(name)
    if not env_val:
        return default
    try:
        return int(env_val.strip())
    except (ValueError, TypeError):
        return default


@dataclass
class ChaiLedgerConfig:
    """Configuration settings for reports, reminders and logging."""

    # Phone normalization: prepended to bare 10-digit numbers
    country_code: str = field(default_factory=lambda: os.getenv("CHAI_COUNTRY_CODE", "91"))

    # Presentation
    currency_symbol: str = field(
        default_factory=lambda: os.getenv("CHAI_CURRENCY_SYMBOL", "₹")
    )
    business_name: str = field(
        default_factory=lambda: os.getenv("CHAI_BUSINESS_NAME", "Kadak चाह")
    )

    # Reminders
    # Partner number shown in reminder messages (format: any, normalized on use)
    partner_contact: Optional[str] = field(
        default_factory=lambda: os.getenv("CHAI_PARTNER_CONTACT") or None
    )
    reminder_lead_days: int = field(
        default_factory=lambda: _parse_int_env("CHAI_REMINDER_LEAD_DAYS", 1)
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("CHAI_LOG_FILE"))

    @classmethod
    def from_env(cls) -> "ChaiLedgerConfig":
        """Create config from environment variables."""
        return cls()

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []
        if not self.country_code or not self.country_code.isdigit():
            errors.append("CHAI_COUNTRY_CODE must be digits only")
        if not self.currency_symbol:
            errors.append("CHAI_CURRENCY_SYMBOL is required")
        if self.reminder_lead_days < 0:
            errors.append("CHAI_REMINDER_LEAD_DAYS cannot be negative")
        return errors


# Default configuration instance
default_config = ChaiLedgerConfig.from_env()
