"""Engine configuration model.

Holds the tunable constants of the metrics engine and the weak-key analyzer.
Values can be overlaid from KEYZEN_ENGINE_<FIELD> environment variables.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "KEYZEN_ENGINE_"


class EngineConfig(BaseModel):
    """Validated configuration for a typing session.

    Attributes:
        error_weight: Weight of the error rate in the weakness score.
        latency_weight: Weight of the normalized latency in the weakness score.
        min_attempts: Keys with fewer attempts are left out of the ranking.
        min_elapsed_ms: Below this elapsed time WPM is reported as 0.0.
        snapshot_outcomes: Number of most recent outcomes included in a snapshot.
        recent_window_secs: Width of the rolling window used for recent WPM.
        milestones: Progress fractions at which a milestone event is emitted.
        weak_key_limit: Optional cap on the number of weak keys in a Summary.
    """

    error_weight: float = Field(default=0.5, ge=0.0)
    latency_weight: float = Field(default=0.5, ge=0.0)
    min_attempts: int = Field(default=3, ge=1)
    min_elapsed_ms: float = Field(default=100.0, ge=0.0)
    snapshot_outcomes: int = Field(default=10, ge=0)
    recent_window_secs: float = Field(default=10.0, gt=0.0)
    milestones: Tuple[float, ...] = (0.25, 0.5, 0.75)
    weak_key_limit: Optional[int] = Field(default=None, ge=1)

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @field_validator("milestones")
    @classmethod
    def validate_milestones(cls, v: Tuple[float, ...]) -> Tuple[float, ...]:
        """Milestones must lie strictly between 0 and 1; they are kept sorted."""
        for m in v:
            if not 0.0 < m < 1.0:
                raise ValueError("milestones must be between 0 and 1 (exclusive)")
        return tuple(sorted(set(v)))

    @model_validator(mode="after")
    def check_weights(self) -> "EngineConfig":
        if self.error_weight == 0.0 and self.latency_weight == 0.0:
            raise ValueError("at least one weakness weight must be non-zero")
        return self

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump()
        data["milestones"] = list(self.milestones)
        return data

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "EngineConfig":
        try:
            return cls.model_validate(dict(d))
        except ValueError as e:
            raise ValueError(f"Invalid engine configuration: {str(e)}") from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from defaults overlaid with KEYZEN_ENGINE_* variables.

        ``milestones`` is read as a comma-separated list; an empty
        ``weak_key_limit`` means unlimited.
        """
        env = os.environ if environ is None else environ
        data: Dict[str, Any] = {}
        for name in cls.model_fields:
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            raw = raw.strip()
            if name == "milestones":
                data[name] = [float(part) for part in raw.split(",") if part.strip()]
            elif name == "weak_key_limit" and raw == "":
                data[name] = None
            else:
                data[name] = raw
        if data:
            logger.debug("Engine configuration overrides from environment: %s", sorted(data))
        return cls.from_dict(data)
