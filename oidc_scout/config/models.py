"""Pydantic models describing how a probing run is configured."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_TIMEOUT_SECONDS = 30.0


def normalise_prefix(value: Any) -> str | None:
    """Trim whitespace and surrounding dots; an empty prefix means none."""

    if value is None:
        return None
    text = str(value).strip().strip(".")
    return text or None


class ScoutConfig(BaseModel):
    """Settings shared by the batch run and the single-record commands."""

    store_path: Path = Field(default=Path("domains.db"))
    prefix: str | None = None
    output_path: Path | None = None
    parallel: int = Field(default=1, ge=1)
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    user_agent: str | None = None
    verify_tls: bool = True
    follow_redirects: bool = True
    # A transport failure is stored as "no endpoint" unless disabled.
    persist_transport_errors: bool = True

    @field_validator("store_path", mode="before")
    @classmethod
    def _coerce_store_path(cls, value: Any) -> Path:
        if value in (None, ""):
            raise ValueError("store_path cannot be empty")
        return Path(value)

    @field_validator("output_path", mode="before")
    @classmethod
    def _coerce_output_path(cls, value: Any) -> Path | None:
        if value in (None, ""):
            return None
        return Path(value)

    @field_validator("prefix", mode="before")
    @classmethod
    def _normalise_prefix(cls, value: Any) -> str | None:
        return normalise_prefix(value)

    def resolved(self, base_dir: Path) -> "ScoutConfig":
        """Return a copy whose relative paths are anchored at ``base_dir``."""

        updates: dict[str, Path] = {}
        if not self.store_path.is_absolute():
            updates["store_path"] = (base_dir / self.store_path).resolve()
        if self.output_path is not None and not self.output_path.is_absolute():
            updates["output_path"] = (base_dir / self.output_path).resolve()
        return self.model_copy(update=updates)


__all__ = ["DEFAULT_TIMEOUT_SECONDS", "ScoutConfig", "normalise_prefix"]
