"""Engine configuration.

One immutable settings object built once per process and handed to the
service constructors. Defaults suit interactive use; every field can be
overridden from the environment with `EngineConfig.from_env()`.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from domain.errors import InvalidInputError
from domain.terrain.services import DEFAULT_MAX_GRID_POINTS, DEFAULT_STEEP_SLOPE_DEG

ENV_PREFIX = "GEOENGINE_"

DEFAULT_DATASET_TTL_S = 24 * 60 * 60.0  # 24 hours


class EngineConfig(BaseModel):
    """Engine settings (Value Object)."""

    dataset_ttl_s: float = Field(default=DEFAULT_DATASET_TTL_S, gt=0)
    dataset_timeout_s: float = Field(default=30.0, gt=0)
    lookup_timeout_s: float = Field(default=20.0, gt=0)
    max_batch_size: int = Field(default=512, ge=1)  # points per lookup request
    max_grid_points: int = Field(default=DEFAULT_MAX_GRID_POINTS, ge=9)
    steep_slope_threshold_deg: float = Field(
        default=DEFAULT_STEEP_SLOPE_DEG, gt=0, lt=90
    )
    dataset_url: str | None = None
    dataset_path: str | None = None
    elevation_url: str | None = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, prefix: str = ENV_PREFIX
    ) -> "EngineConfig":
        """Build from <prefix><FIELD> variables, e.g. GEOENGINE_MAX_BATCH_SIZE.

        Raises:
            InvalidInputError: A variable does not parse for its field
        """
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(f"{prefix}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid engine configuration: {e}") from e
