"""Configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field, SecretStr

from syncwatch.models.enums import ConflictPolicy


class SyncConfig(BaseModel):
    """Tuning knobs for the reconciliation engine and room service."""

    drift_threshold: float = Field(default=2.0, gt=0.0)
    correction_guard_seconds: float = Field(default=0.5, ge=0.0)
    suppress_window_seconds: float = Field(default=0.5, ge=0.0)
    drift_check_interval: float = Field(default=0.25, gt=0.0)
    conflict_policy: ConflictPolicy = ConflictPolicy.LAST_RECEIVED
    code_max_attempts: int = Field(default=5, ge=1)
    recent_event_cache: int = Field(default=64, ge=1)


class RestStoreConfig(BaseModel):
    """PostgREST (Supabase-style) room store configuration."""

    base_url: str
    api_key: SecretStr | None = None
    table: str = "rooms"
    schema_path: str = "/rest/v1"
    timeout: float = 10.0
    headers: dict[str, str] = Field(default_factory=dict)
