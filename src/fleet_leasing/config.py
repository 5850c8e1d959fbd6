from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LeasingSettings(BaseSettings):
    # Simulated back-end outcomes (env: FLEET_LEASING_PROCESS_SUCCESS_RATE, ...)
    PROCESS_SUCCESS_RATE: float = Field(default=0.90, ge=0.0, le=1.0)
    RETRY_SUCCESS_RATE: float = Field(default=0.70, ge=0.0, le=1.0)
    LESSEE_SUBMIT_SUCCESS_RATE: float = Field(default=0.90, ge=0.0, le=1.0)
    LEASE_SUBMIT_SUCCESS_RATE: float = Field(default=0.95, ge=0.0, le=1.0)

    # Seconds each simulated round trip takes
    PROCESS_DELAY_SECONDS: float = Field(default=2.0, ge=0.0)
    RETRY_DELAY_SECONDS: float = Field(default=1.5, ge=0.0)
    LESSEE_SUBMIT_DELAY_SECONDS: float = Field(default=2.0, ge=0.0)
    LEASE_SUBMIT_DELAY_SECONDS: float = Field(default=3.0, ge=0.0)

    RANDOM_SEED: int | None = Field(default=None, description="Seed for the outcome generator; unseeded when empty")
    EXPIRING_SOON_DAYS: int = Field(default=30, description="Leases ending within this many days count as expiring")

    model_config = SettingsConfigDict(env_prefix="FLEET_LEASING_", extra="ignore")


@lru_cache
def get_settings() -> LeasingSettings:
    return LeasingSettings()
