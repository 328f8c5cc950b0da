from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple


DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")


@dataclass(frozen=True)
class Settings:
    google_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    animation_interval: float = 1.5
    default_category_count: int = 5
    cors_origins: Tuple[str, ...] = field(default_factory=lambda: DEFAULT_CORS_ORIGINS)


def _as_float(value: Optional[str], default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        out = float(value)
    except ValueError:
        return default
    return out if out > 0 else default


def _as_int(value: Optional[str], default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        out = int(value)
    except ValueError:
        return default
    return max(0, out)


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Read settings from the environment (or an explicit mapping)."""
    env = os.environ if env is None else env

    origins_raw = env.get("GVA_CORS_ORIGINS")
    if origins_raw:
        origins = tuple(o.strip() for o in origins_raw.split(",") if o.strip())
    else:
        origins = DEFAULT_CORS_ORIGINS

    return Settings(
        google_api_key=(env.get("GOOGLE_API_KEY") or "").strip() or None,
        gemini_model=(env.get("GVA_GEMINI_MODEL") or "").strip() or Settings.gemini_model,
        animation_interval=_as_float(env.get("GVA_ANIMATION_INTERVAL"), Settings.animation_interval),
        default_category_count=_as_int(env.get("GVA_DEFAULT_CATEGORIES"), Settings.default_category_count),
        cors_origins=origins or DEFAULT_CORS_ORIGINS,
    )
