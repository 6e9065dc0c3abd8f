"""Mini README: Centralised configuration for the Fleet Ledger service.

Structure:
    * FleetLedgerSettings - Pydantic model describing runtime configuration.
    * get_settings - cached accessor for environment-aware settings.

Usage:
    Import ``get_settings`` to read environment variables prefixed with
    ``FLEETLEDGER_``. Session timing, invoice numbering and the record store
    backend are all driven from here so no screen or service hardcodes its own
    constants.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FleetLedgerSettings(BaseSettings):
    """Runtime configuration for the Fleet Ledger service."""

    model_config = SettingsConfigDict(
        env_prefix="FLEETLEDGER_",
        env_file=".env",
        case_sensitive=False,
    )

    environment: str = Field(
        "development",
        description="Environment label controlling debug toggles and logging levels.",
    )
    data_directory: Path = Field(
        Path("data"),
        description="Directory holding the JSON record store when that backend is active.",
    )
    interface_host: str = Field(
        "0.0.0.0",
        description="Network interface for the web service to bind to.",
    )
    interface_port: int = Field(
        8000,
        description="Port the web service exposes.",
        ge=1,
        le=65535,
    )
    store_backend: str = Field(
        "memory",
        description="Record store backend registered in the store registry ('memory' or 'json').",
    )
    inactivity_timeout_minutes: float = Field(
        7.0,
        description="Idle minutes after which an authenticated session is signed out.",
        gt=0,
    )
    inactivity_warning_minutes: float = Field(
        2.0,
        description="Minutes before expiry at which the idle warning becomes due.",
        ge=0,
    )
    login_route: str = Field(
        "/login",
        description="Route unauthenticated or expired sessions are redirected to.",
    )
    session_cookie_name: str = Field(
        "token",
        description="Cookie carrying the session token issued at sign-in.",
    )
    invoice_prefix: str = Field(
        "MOK-PFI-",
        description="Prefix of wallet invoice numbers.",
    )
    invoice_counter_seed: int = Field(
        599,
        description="Counter value assumed when no invoice has been issued yet.",
        ge=0,
    )
    store_snapshot_name: Optional[str] = Field(
        "ledger.json",
        description="File name of the JSON store snapshot inside the data directory.",
    )

    @field_validator("data_directory", mode="before")
    @classmethod
    def _expand_path(cls, value: Optional[str | Path]) -> Path:
        """Ensure configured paths expand user directories and exist."""

        path = Path(value).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def inactivity_timeout_seconds(self) -> float:
        return self.inactivity_timeout_minutes * 60

    @property
    def inactivity_warning_seconds(self) -> float:
        return min(self.inactivity_warning_minutes * 60, self.inactivity_timeout_seconds)


@lru_cache()
def get_settings() -> FleetLedgerSettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return FleetLedgerSettings()
