"""Simulation configuration."""

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .core.errors import ConfigError
from .distributions import ARRIVAL_MEAN_MS, SERVICE_MEAN_MS


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters of one simulator instance.

    ``time_scale`` is the number of simulated seconds per wall-clock second:
    sleeps are divided by it and measured waiting times multiplied by it, so
    ``time_scale=600`` plays a ten-minute consultation in one second.
    """
    arrival_mean_ms: float = ARRIVAL_MEAN_MS
    service_mean_ms: float = SERVICE_MEAN_MS
    high_preference_probability: float = 0.2
    time_scale: float = 1.0
    seed: Optional[int] = None
    log_path: str = "consultation_log.txt"
    max_claim_attempts: int = 3
    join_timeout: Optional[float] = None

    def __post_init__(self):
        if self.arrival_mean_ms <= 0:
            raise ConfigError("arrival_mean_ms must be positive")
        if self.service_mean_ms < 0:
            raise ConfigError("service_mean_ms must be non-negative")
        if not 0.0 <= self.high_preference_probability <= 1.0:
            raise ConfigError("high_preference_probability must be within [0, 1]")
        if self.time_scale <= 0:
            raise ConfigError("time_scale must be positive")
        if self.max_claim_attempts < 1:
            raise ConfigError("max_claim_attempts must be at least 1")
        if self.join_timeout is not None and self.join_timeout < 0:
            raise ConfigError("join_timeout must be non-negative")

    def to_seconds(self, millis: float) -> float:
        """Wall-clock seconds to sleep for a simulated duration in milliseconds."""
        return millis / 1000.0 / self.time_scale

    def to_simulated(self, wall_seconds: float) -> float:
        """Simulated seconds corresponding to a measured wall-clock duration."""
        return wall_seconds * self.time_scale

    def with_overrides(self, **overrides: Any) -> 'SimulationConfig':
        """Copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def config_from_dict(data: Dict[str, Any]) -> SimulationConfig:
    known = {f.name for f in fields(SimulationConfig)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
    try:
        return SimulationConfig(**data)
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc


def load_config(path: Union[str, Path]) -> SimulationConfig:
    """Load a configuration from a JSON file."""
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read configuration {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration {path} must contain a JSON object")
    return config_from_dict(data)
