"""
Tuning options for acoustic speaker labeling.

A single sensitivity value (0-100) drives every threshold of the
pipeline through linear interpolation. Each threshold can also be
overridden independently; overrides are clamped to a safe range rather
than rejected.

Low sensitivity is conservative (prefers a single speaker), high
sensitivity splits more eagerly.

Environment variables (read by ``SpeakerLabelingOptions.from_env``):
    SPEAKER_SENSITIVITY, SPEAKER_MIN_SCORE_GAIN, SPEAKER_MAX_SWITCH_RATE,
    SPEAKER_MIN_SEPARATION, SPEAKER_MIN_CLUSTER_SIZE, SPEAKER_MAX_AUTO,
    SPEAKER_GLOBAL_VARIANCE_GATE, SPEAKER_SHORT_RUN_MERGE_SECONDS
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

MIN_SENSITIVITY = 0
MAX_SENSITIVITY = 100
DEFAULT_SENSITIVITY = 25

# Thresholds derived from sensitivity: name -> (value at 0, value at 100)
DERIVED_PARAMETERS: Dict[str, Tuple[float, float]] = {
    'min_score_gain_for_split': (0.19, 0.05),
    'max_switch_rate_for_split': (0.34, 0.58),
    'min_cluster_separation': (0.95, 0.55),
    'global_variance_gate': (0.66, 0.42),
    'short_run_merge_seconds': (1.9, 1.0),
    'complexity_penalty_per_speaker': (0.12, 0.05),
    'singleton_cluster_penalty': (0.26, 0.12),
    'imbalance_penalty_factor': (0.08, 0.04),
    'switch_penalty_short': (0.30, 0.15),
    'switch_penalty_long': (0.18, 0.10),
}

# Allowed range for each user override: name -> (min, max)
OVERRIDE_RANGES: Dict[str, Tuple[float, float]] = {
    'min_score_gain_for_split': (0.0, 1.0),
    'max_switch_rate_for_split': (0.0, 1.0),
    'min_cluster_separation': (0.1, 5.0),
    'min_cluster_size': (1, 12),
    'max_auto_speakers': (1, 12),
    'global_variance_gate': (0.05, 4.0),
    'short_run_merge_seconds': (0.2, 8.0),
}

# Environment variable for each override
ENV_VARS: Dict[str, str] = {
    'min_score_gain_for_split': 'SPEAKER_MIN_SCORE_GAIN',
    'max_switch_rate_for_split': 'SPEAKER_MAX_SWITCH_RATE',
    'min_cluster_separation': 'SPEAKER_MIN_SEPARATION',
    'min_cluster_size': 'SPEAKER_MIN_CLUSTER_SIZE',
    'max_auto_speakers': 'SPEAKER_MAX_AUTO',
    'global_variance_gate': 'SPEAKER_GLOBAL_VARIANCE_GATE',
    'short_run_merge_seconds': 'SPEAKER_SHORT_RUN_MERGE_SECONDS',
}

_INT_OVERRIDES = ('min_cluster_size', 'max_auto_speakers')


def clamp(value, low, high):
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def lerp(low: float, high: float, t: float) -> float:
    """Linear interpolation from low (t=0) to high (t=1), t clamped to [0, 1]."""
    return low + (high - low) * clamp(t, 0.0, 1.0)


def _env_number(name: str, cast):
    """Read an optional numeric environment variable; unset or empty gives None."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return None
    try:
        return cast(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid value for {name}: {raw!r}")
        return None


@dataclass(frozen=True)
class SpeakerLabelingOptions:
    """
    Immutable tuning knobs for speaker labeling.

    Attributes:
        sensitivity: 0-100, drives every threshold that is not overridden
        min_score_gain_for_split: Required penalized-score uplift over one speaker
        max_switch_rate_for_split: Highest tolerated speaker switch rate
        min_cluster_separation: Minimum distance between speaker centroids
        min_cluster_size: Clusters smaller than this are dissolved
        max_auto_speakers: Upper bound on auto-detected speaker count
        global_variance_gate: Mean pairwise feature distance below which
            the recording is treated as a single speaker
        short_run_merge_seconds: Single-segment runs shorter than this merge
            into a neighbour
    """

    sensitivity: int = DEFAULT_SENSITIVITY
    min_score_gain_for_split: Optional[float] = None
    max_switch_rate_for_split: Optional[float] = None
    min_cluster_separation: Optional[float] = None
    min_cluster_size: Optional[int] = None
    max_auto_speakers: Optional[int] = None
    global_variance_gate: Optional[float] = None
    short_run_merge_seconds: Optional[float] = None

    @classmethod
    def from_env(cls) -> 'SpeakerLabelingOptions':
        """Build options from SPEAKER_* environment variables."""
        sensitivity = _env_number('SPEAKER_SENSITIVITY', int)
        overrides = {
            name: _env_number(env_var, int if name in _INT_OVERRIDES else float)
            for name, env_var in ENV_VARS.items()
        }
        options = cls(
            sensitivity=DEFAULT_SENSITIVITY if sensitivity is None else sensitivity,
            **overrides
        )
        return options.normalized()

    def normalized(self) -> 'SpeakerLabelingOptions':
        """Return a copy with sensitivity and every override clamped into range."""
        changes: Dict[str, Any] = {
            'sensitivity': int(clamp(self.sensitivity, MIN_SENSITIVITY, MAX_SENSITIVITY))
        }
        for name, (low, high) in OVERRIDE_RANGES.items():
            value = getattr(self, name)
            if value is not None:
                changes[name] = clamp(value, low, high)
        return replace(self, **changes)

    @property
    def sensitivity_factor(self) -> float:
        """Sensitivity mapped to [0, 1]."""
        return clamp(self.sensitivity, MIN_SENSITIVITY, MAX_SENSITIVITY) / 100.0

    def _resolve(self, name: str) -> float:
        """Override if set (clamped), else the sensitivity-derived value."""
        override = getattr(self, name, None)
        if override is not None:
            low, high = OVERRIDE_RANGES[name]
            return float(clamp(override, low, high))
        low, high = DERIVED_PARAMETERS[name]
        return lerp(low, high, self.sensitivity_factor)

    @property
    def effective_min_score_gain_for_split(self) -> float:
        return self._resolve('min_score_gain_for_split')

    @property
    def effective_max_switch_rate_for_split(self) -> float:
        return self._resolve('max_switch_rate_for_split')

    @property
    def effective_min_cluster_separation(self) -> float:
        return self._resolve('min_cluster_separation')

    @property
    def effective_global_variance_gate(self) -> float:
        return self._resolve('global_variance_gate')

    @property
    def effective_short_run_merge_seconds(self) -> float:
        return self._resolve('short_run_merge_seconds')

    @property
    def effective_min_cluster_size(self) -> int:
        if self.min_cluster_size is not None:
            return int(clamp(self.min_cluster_size, *OVERRIDE_RANGES['min_cluster_size']))
        return 2 if self.sensitivity_factor < 0.5 else 1

    @property
    def effective_max_auto_speakers(self) -> int:
        if self.max_auto_speakers is not None:
            return int(clamp(self.max_auto_speakers, *OVERRIDE_RANGES['max_auto_speakers']))
        return 4 if self.sensitivity_factor < 0.35 else 6

    # Penalty weights have no override; they follow sensitivity only.

    @property
    def effective_complexity_penalty_per_speaker(self) -> float:
        return self._resolve('complexity_penalty_per_speaker')

    @property
    def effective_singleton_cluster_penalty(self) -> float:
        return self._resolve('singleton_cluster_penalty')

    @property
    def effective_imbalance_penalty_factor(self) -> float:
        return self._resolve('imbalance_penalty_factor')

    @property
    def effective_switch_penalty_short(self) -> float:
        return self._resolve('switch_penalty_short')

    @property
    def effective_switch_penalty_long(self) -> float:
        return self._resolve('switch_penalty_long')

    def describe(self) -> Dict[str, Any]:
        """All effective values, for logging and diagnostics."""
        return {
            'sensitivity': self.sensitivity,
            'min_score_gain_for_split': round(self.effective_min_score_gain_for_split, 4),
            'max_switch_rate_for_split': round(self.effective_max_switch_rate_for_split, 4),
            'min_cluster_separation': round(self.effective_min_cluster_separation, 4),
            'min_cluster_size': self.effective_min_cluster_size,
            'max_auto_speakers': self.effective_max_auto_speakers,
            'global_variance_gate': round(self.effective_global_variance_gate, 4),
            'short_run_merge_seconds': round(self.effective_short_run_merge_seconds, 4),
            'complexity_penalty_per_speaker': round(self.effective_complexity_penalty_per_speaker, 4),
            'singleton_cluster_penalty': round(self.effective_singleton_cluster_penalty, 4),
            'imbalance_penalty_factor': round(self.effective_imbalance_penalty_factor, 4),
            'switch_penalty_short': round(self.effective_switch_penalty_short, 4),
            'switch_penalty_long': round(self.effective_switch_penalty_long, 4),
        }
