"""
config.py

Parameters of the pencil-sketch pipeline. All of them are required; invalid
values are rejected when the model is built.

Dependencies:
    - pydantic
    - python-dotenv

Raises:
    pydantic.ValidationError: For out-of-range parameter values.
    ValueError: When an environment variable is missing.

Author: Granton s.r.o.
Date: 2025-09-03
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class SketchParams(BaseModel):
    # --- GAUSSIAN BLUR ---
    gaussian_size: int = Field(..., ge=0)  # 0 disables the blur
    sigma: float = Field(..., gt=0.0)
    # --- BILATERAL FILTER ---
    bilateral_size: int = Field(..., ge=0)
    sigma_c: float = Field(..., gt=0.0)  # intensity difference sensitivity
    sigma_s: float = Field(..., gt=0.0)  # spatial falloff
    # --- TONE / COLOR ---
    gamma: float = Field(..., gt=0.0)
    hue: float = Field(..., ge=0.0)  # hue scale factor
    saturation: float = Field(..., gt=0.0)  # saturation exponent

    @classmethod
    def classic(cls) -> "SketchParams":
        """Parameter set tuned for full-size photographs."""
        return cls(
            gaussian_size=31,
            sigma=6.0,
            bilateral_size=3,
            sigma_c=230.0,
            sigma_s=230.0,
            gamma=6.0,
            hue=1.0,
            saturation=0.8,
        )

    @classmethod
    def from_env(cls, prefix: str = "SKETCH_") -> "SketchParams":
        """
        Build parameters from environment variables (``.env`` is loaded first).

        Every field is read from ``<prefix><FIELD_NAME>``, e.g. ``SKETCH_GAMMA``.

        Raises:
            ValueError: If a variable is not set.
            pydantic.ValidationError: If a value is out of range.
        """
        load_dotenv()
        values = {}
        for name in cls.model_fields:
            key = f"{prefix}{name.upper()}"
            raw = os.getenv(key)
            if raw is None:
                raise ValueError(f"Missing environment variable: {key}")
            values[name] = raw
        return cls(**values)
