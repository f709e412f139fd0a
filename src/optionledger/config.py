"""Engine configuration with environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

DEFAULT_MERGE_WINDOW = timedelta(minutes=5)
DEFAULT_CONSOLIDATION_TOLERANCE = Decimal("0.02")
CONTRACT_MULTIPLIER = 100

MERGE_WINDOW_ENV_VAR = "OPTIONLEDGER_MERGE_WINDOW_SECONDS"
CONSOLIDATE_ENV_VAR = "OPTIONLEDGER_CONSOLIDATE_FILLS"
TOLERANCE_ENV_VAR = "OPTIONLEDGER_CONSOLIDATION_TOLERANCE"

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(ValueError):
    """Raised when an environment override cannot be parsed."""


@dataclass(frozen=True)
class EngineConfig:
    """Tunable parameters for a position build."""

    merge_window: timedelta = DEFAULT_MERGE_WINDOW
    contract_multiplier: int = CONTRACT_MULTIPLIER
    consolidate_fills: bool = False
    consolidation_tolerance: Decimal = DEFAULT_CONSOLIDATION_TOLERANCE
    detect_covered_calls: bool = True

    def __post_init__(self) -> None:
        if self.merge_window <= timedelta(0):
            raise ConfigError("merge_window must be positive")
        if self.contract_multiplier <= 0:
            raise ConfigError("contract_multiplier must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        env = os.environ if environ is None else environ
        kwargs = {}

        window = env.get(MERGE_WINDOW_ENV_VAR)
        if window:
            try:
                kwargs["merge_window"] = timedelta(seconds=float(window))
            except ValueError as exc:
                raise ConfigError(f"{MERGE_WINDOW_ENV_VAR} must be a number: {window}") from exc

        consolidate = env.get(CONSOLIDATE_ENV_VAR)
        if consolidate:
            kwargs["consolidate_fills"] = consolidate.strip().lower() in _TRUTHY

        tolerance = env.get(TOLERANCE_ENV_VAR)
        if tolerance:
            try:
                kwargs["consolidation_tolerance"] = Decimal(tolerance)
            except InvalidOperation as exc:
                raise ConfigError(f"{TOLERANCE_ENV_VAR} must be a decimal: {tolerance}") from exc

        return cls(**kwargs)
