"""KeyStat: per-key error and latency aggregate used for weak-key ranking."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator, model_validator


class KeyStat(BaseModel):
    """Aggregated attempts, errors and latency for one logical key."""

    key: str
    attempts: int = Field(default=0, ge=0)
    errors: int = Field(default=0, ge=0)
    total_latency: timedelta = timedelta(0)

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
    }

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        if len(v) != 1:
            raise ValueError("key must be exactly one character")
        return v

    @field_validator("total_latency")
    @classmethod
    def validate_total_latency(cls, v: timedelta) -> timedelta:
        if v < timedelta(0):
            raise ValueError("total_latency must not be negative")
        return v

    @model_validator(mode="after")
    def check_counts(self) -> "KeyStat":
        if self.errors > self.attempts:
            raise ValueError("errors cannot exceed attempts")
        return self

    @property
    def error_rate(self) -> float:
        """Errors per attempt, 0.0 when the key was never attempted."""
        if self.attempts == 0:
            return 0.0
        return self.errors / self.attempts

    @property
    def mean_latency(self) -> timedelta:
        if self.attempts == 0:
            return timedelta(0)
        return self.total_latency / self.attempts

    def record(self, *, correct: bool, latency: timedelta) -> None:
        """Add one attempt."""
        self.attempts += 1
        if not correct:
            self.errors += 1
        self.total_latency += max(latency, timedelta(0))

    def merge(self, other: "KeyStat") -> "KeyStat":
        """Combine with stats for the same key from another session."""
        if other.key != self.key:
            raise ValueError(f"cannot merge stats for {other.key!r} into {self.key!r}")
        return KeyStat(
            key=self.key,
            attempts=self.attempts + other.attempts,
            errors=self.errors + other.errors,
            total_latency=self.total_latency + other.total_latency,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "attempts": self.attempts,
            "errors": self.errors,
            "total_latency": self.total_latency.total_seconds(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "KeyStat":
        data = d.copy()
        latency = data.get("total_latency")
        if isinstance(latency, (int, float)):
            data["total_latency"] = timedelta(seconds=latency)
        return cls.model_validate(data)
