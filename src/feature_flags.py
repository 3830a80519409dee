"""Runtime feature flag helpers for puzzle sessions."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import-untyped]

__all__ = [
    "SessionFeatures",
    "build_env",
    "get_session_feature",
    "is_feature_enabled",
    "reload",
    "resolve_session_features",
]

_FEATURES_FILENAME = "config/features.toml"
_BOOL_FLAGS = ("auto_check", "telemetry", "persist")
_DEFAULTS: Dict[str, Any] = {
    "auto_check": True,
    "telemetry": True,
    "persist": True,
    "source": "today",
}


def _features_path() -> Path:
    return Path(__file__).resolve().parents[1] / _FEATURES_FILENAME


@lru_cache(maxsize=1)
def _load_features() -> dict[str, Any]:
    path = _features_path()
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def reload() -> None:
    """Clear the cached feature configuration."""

    _load_features.cache_clear()


def build_env(overrides: Mapping[str, str] | None = None) -> Dict[str, str]:
    """Merge process environment with optional overrides."""

    env: Dict[str, str] = {str(k): str(v) for k, v in os.environ.items()}
    if overrides:
        env.update({str(k): str(v) for k, v in overrides.items()})
    return env


def _coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalised = value.strip().lower()
        if normalised in {"1", "true", "yes", "on"}:
            return True
        if normalised in {"0", "false", "no", "off"}:
            return False
    return None


def get_session_feature(profile: str | None = None) -> dict[str, Any]:
    """Return the merged session feature block for the given profile."""

    features = _load_features()
    entry = features.get("session")
    merged: dict[str, Any] = dict(_DEFAULTS)
    if isinstance(entry, dict):
        for key, value in entry.items():
            if key == "by_profile":
                continue
            merged[key] = value

        if profile:
            by_profile = entry.get("by_profile")
            if isinstance(by_profile, dict):
                profile_block = by_profile.get(profile.lower())
                if isinstance(profile_block, dict):
                    merged.update(profile_block)
    return merged


def is_feature_enabled(
    name: str,
    env: Mapping[str, str] | None = None,
    *,
    profile: str | None = None,
) -> bool:
    """Return ``True`` when the boolean session flag ``name`` is enabled.

    ``CLI_SUDOKU_<NAME>`` takes precedence over ``SUDOKU_<NAME>``, which in
    turn overrides the TOML value.
    """

    if name not in _BOOL_FLAGS:
        raise KeyError(f"Unknown session feature '{name}'")

    enabled = bool(get_session_feature(profile).get(name, False))
    if env:
        upper = name.upper()
        for key in (f"CLI_SUDOKU_{upper}", f"SUDOKU_{upper}"):
            override = _coerce_bool(env.get(key))
            if override is not None:
                enabled = override
                break
    return enabled


class SessionFeatures:
    """Resolved flags for one session controller."""

    __slots__ = ("profile", "auto_check", "telemetry", "persist", "source")

    def __init__(
        self,
        profile: str,
        *,
        auto_check: bool,
        telemetry: bool,
        persist: bool,
        source: str,
    ) -> None:
        self.profile = profile
        self.auto_check = auto_check
        self.telemetry = telemetry
        self.persist = persist
        self.source = source

    @property
    def is_admin(self) -> bool:
        return self.profile == "admin"

    def __repr__(self) -> str:
        return (
            f"SessionFeatures(profile={self.profile!r}, auto_check={self.auto_check}, "
            f"telemetry={self.telemetry}, persist={self.persist}, source={self.source!r})"
        )


def resolve_session_features(
    profile: str = "player",
    env: Mapping[str, str] | None = None,
) -> SessionFeatures:
    """Resolve every session flag for ``profile`` with environment overrides."""

    env_map = build_env(env)
    block = get_session_feature(profile)
    source = str(env_map.get("CLI_SUDOKU_SOURCE") or env_map.get("SUDOKU_SOURCE") or block["source"])
    return SessionFeatures(
        profile.lower(),
        auto_check=is_feature_enabled("auto_check", env_map, profile=profile),
        telemetry=is_feature_enabled("telemetry", env_map, profile=profile),
        persist=is_feature_enabled("persist", env_map, profile=profile),
        source=source,
    )
