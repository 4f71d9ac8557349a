#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Mon Oct 12 11:02:47 2026

Configuration dataclasses, mode selectors and resource ceilings.

All configuration is passed explicitly to the analysis entry points; nothing
here is mutated at run time.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping, Optional

from boolbasin.errors import ConfigurationError

__all__ = [
    "DEFAULT_STATE_CAP",
    "DEFAULT_STEP_CAP",
    "MAX_NODES_DETERMINISTIC",
    "MAX_NODES_WEIGHTED",
    "MAX_NODES_PROBABILISTIC",
    "CANCEL_CHECK_INTERVAL",
    "TIE_TOLERANCE",
    "EXACT_INDEGREE_LIMIT",
    "AnalysisMode",
    "TieBehavior",
    "ProbabilisticMethod",
    "DeterministicConfig",
    "WeightedConfig",
    "ProbabilisticConfig",
    "make_config",
]

# ---------------------------------------------------------------------------
# Ceilings and defaults
# ---------------------------------------------------------------------------

DEFAULT_STATE_CAP = 100_000
DEFAULT_STEP_CAP = 10_000
MAX_NODES_DETERMINISTIC = 20
MAX_NODES_WEIGHTED = 64
MAX_NODES_PROBABILISTIC = 200

PROBABILISTIC_DEFAULT_NOISE = 0.25
PROBABILISTIC_DEFAULT_DEGRADATION = 0.1
PROBABILISTIC_DEFAULT_ITERATIONS = 500
PROBABILISTIC_DEFAULT_TOLERANCE = 1e-4
PROBABILISTIC_DEFAULT_WINDOW = 5

# steps between two cancellation checks inside a single trajectory
CANCEL_CHECK_INTERVAL = 1024
# |raw - threshold| below this counts as a tie in the weighted threshold
TIE_TOLERANCE = 1e-9
# above this in-degree the mean-field engine uses a normal approximation
EXACT_INDEGREE_LIMIT = 14


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class AnalysisMode(Enum):
    """Dynamics mode selector."""

    DETERMINISTIC = "deterministic"
    WEIGHTED = "weighted"
    PROBABILISTIC = "probabilistic"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower().replace('_', '-')
            aliases = {'boolean': cls.DETERMINISTIC, 'rule-based': cls.DETERMINISTIC,
                       'exact': cls.DETERMINISTIC, 'threshold': cls.WEIGHTED,
                       'noisy': cls.PROBABILISTIC, 'stochastic': cls.PROBABILISTIC}
            for member in cls:
                if member.value == normalized:
                    return member
            if normalized in aliases:
                return aliases[normalized]
        return None


class TieBehavior(Enum):
    """Next value of a node whose weighted input equals its threshold exactly."""

    HOLD = "hold"
    FORCE_ON = "force-on"
    FORCE_OFF = "force-off"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower().replace('_', '-')
            aliases = {'zero-as-one': cls.FORCE_ON, 'on': cls.FORCE_ON,
                       'zero-as-zero': cls.FORCE_OFF, 'off': cls.FORCE_OFF,
                       'keep': cls.HOLD}
            for member in cls:
                if member.value == normalized:
                    return member
            if normalized in aliases:
                return aliases[normalized]
        return None


class ProbabilisticMethod(Enum):
    """How the probabilistic engine propagates the node marginals."""

    MEAN_FIELD = "mean-field"
    SAMPLING = "sampling"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower().replace('_', '-')
            for member in cls:
                if member.value == normalized:
                    return member
            if normalized in ('monte-carlo', 'simulation'):
                return cls.SAMPLING
        return None


def _coerce_enum(enum_cls, value, name):
    try:
        return enum_cls(value)
    except ValueError:
        choices = ', '.join(repr(m.value) for m in enum_cls)
        raise ConfigurationError(f"{name} must be one of {choices}, got {value!r}") from None


def _check_probability(value, name):
    if not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be in [0, 1], got {value!r}")


def _check_positive_int(value, name):
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")


def _check_biases(biases):
    if not isinstance(biases, Mapping):
        raise ConfigurationError("biases must be a mapping from node id to number")
    for node_id, value in biases.items():
        if not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ConfigurationError(f"bias of node {node_id!r} must be a finite number, got {value!r}")


# ---------------------------------------------------------------------------
# Config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DeterministicConfig:
    """
    Exploration knobs for the exact boolean mode.

    **Members:**

        - state_cap (int): Maximum number of initial states. If the state
          space is larger, a seeded random sample of this many distinct
          states is explored and the result is truncated.
        - step_cap (int): Maximum number of transitions per trajectory.
        - seed (int | np.random.Generator | None): Seed of the sampler.
        - record_stg (bool): Keep every observed transition in the result.
        - max_nodes (int): Node-count ceiling for the mode.
        - cancel_check_interval (int): Steps between two cancellation checks
          inside one trajectory.
    """

    state_cap: int = DEFAULT_STATE_CAP
    step_cap: int = DEFAULT_STEP_CAP
    seed: Any = None
    record_stg: bool = False
    max_nodes: int = MAX_NODES_DETERMINISTIC
    cancel_check_interval: int = CANCEL_CHECK_INTERVAL

    def __post_init__(self) -> None:
        _check_positive_int(self.state_cap, "state_cap")
        _check_positive_int(self.step_cap, "step_cap")
        _check_positive_int(self.max_nodes, "max_nodes")
        _check_positive_int(self.cancel_check_interval, "cancel_check_interval")


@dataclass(frozen=True)
class WeightedConfig(DeterministicConfig):
    """
    Exploration knobs plus threshold parameters for the weighted mode.

    **Members (in addition to DeterministicConfig):**

        - threshold_multiplier (float): A node turns on when its weighted
          input exceeds threshold_multiplier * max(sum of |incoming weights|, 1).
        - tie_behavior (TieBehavior | str): Policy when the input equals the
          threshold: 'hold', 'force-on' or 'force-off'.
        - biases (dict[str:float]): Additive constant per node id.
    """

    max_nodes: int = MAX_NODES_WEIGHTED
    threshold_multiplier: float = 0.5
    tie_behavior: TieBehavior = TieBehavior.HOLD
    biases: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, 'tie_behavior', _coerce_enum(TieBehavior, self.tie_behavior, "tie_behavior"))
        if not isinstance(self.threshold_multiplier, (int, float)) or not math.isfinite(self.threshold_multiplier):
            raise ConfigurationError(f"threshold_multiplier must be a finite number, got {self.threshold_multiplier!r}")
        _check_biases(self.biases)


@dataclass(frozen=True)
class ProbabilisticConfig:
    """
    Parameters of the noisy iterative engine.

    **Members:**

        - noise (float): Probability in [0, 1] that a node's candidate value is
          flipped in a step.
        - degradation (float): Factor in [0, 1] by which the candidate value is
          blended toward 0 in each step.
        - max_iterations (int): Iteration cap.
        - tolerance (float): Convergence tolerance on the max-norm change of
          the marginal vector.
        - confirmation_window (int): Number of consecutive steps the change
          must stay below tolerance to declare convergence.
        - initial_probability (float): Initial activity of every node without
          an entry in initial_probabilities.
        - initial_probabilities (dict[str:float]): Per-node initial activity.
        - method (ProbabilisticMethod | str): 'mean-field' or 'sampling'.
        - n_samples (int): Ensemble size of the sampling method; raised to the
          number of initial states when more are given.
        - binarization_threshold (float): Marginals at or above this value are
          reported as on in the dominant state.
        - threshold_multiplier, tie_behavior, biases: as in WeightedConfig.
        - basal_activity (dict[str:float]): Constant input per node added on
          top of its bias.
        - seed: Seed of the sampling method.
        - max_nodes (int): Node-count ceiling for the mode.
    """

    noise: float = PROBABILISTIC_DEFAULT_NOISE
    degradation: float = PROBABILISTIC_DEFAULT_DEGRADATION
    max_iterations: int = PROBABILISTIC_DEFAULT_ITERATIONS
    tolerance: float = PROBABILISTIC_DEFAULT_TOLERANCE
    confirmation_window: int = PROBABILISTIC_DEFAULT_WINDOW
    initial_probability: float = 0.5
    initial_probabilities: Mapping[str, float] = field(default_factory=dict)
    method: ProbabilisticMethod = ProbabilisticMethod.MEAN_FIELD
    n_samples: int = 1000
    binarization_threshold: float = 0.5
    threshold_multiplier: float = 0.5
    tie_behavior: TieBehavior = TieBehavior.HOLD
    biases: Mapping[str, float] = field(default_factory=dict)
    basal_activity: Mapping[str, float] = field(default_factory=dict)
    seed: Any = None
    max_nodes: int = MAX_NODES_PROBABILISTIC
    cancel_check_interval: int = 16

    def __post_init__(self) -> None:
        _check_probability(self.noise, "noise")
        _check_probability(self.degradation, "degradation")
        _check_probability(self.initial_probability, "initial_probability")
        _check_probability(self.binarization_threshold, "binarization_threshold")
        for node_id, value in dict(self.initial_probabilities).items():
            _check_probability(value, f"initial probability of node {node_id!r}")
        _check_positive_int(self.max_iterations, "max_iterations")
        _check_positive_int(self.confirmation_window, "confirmation_window")
        _check_positive_int(self.n_samples, "n_samples")
        _check_positive_int(self.max_nodes, "max_nodes")
        _check_positive_int(self.cancel_check_interval, "cancel_check_interval")
        if not isinstance(self.tolerance, (int, float)) or not self.tolerance > 0:
            raise ConfigurationError(f"tolerance must be a positive number, got {self.tolerance!r}")
        if not isinstance(self.threshold_multiplier, (int, float)) or not math.isfinite(self.threshold_multiplier):
            raise ConfigurationError(f"threshold_multiplier must be a finite number, got {self.threshold_multiplier!r}")
        object.__setattr__(self, 'tie_behavior', _coerce_enum(TieBehavior, self.tie_behavior, "tie_behavior"))
        object.__setattr__(self, 'method', _coerce_enum(ProbabilisticMethod, self.method, "method"))
        _check_biases(self.biases)
        _check_biases(self.basal_activity)


_CONFIG_CLASSES = {
    AnalysisMode.DETERMINISTIC: DeterministicConfig,
    AnalysisMode.WEIGHTED: WeightedConfig,
    AnalysisMode.PROBABILISTIC: ProbabilisticConfig,
}


def make_config(mode, config : Optional[object] = None, **kwargs):
    """
    Build (or validate) the config object of a mode.

    **Parameters:**

        - mode (AnalysisMode | str): The dynamics mode.
        - config (DeterministicConfig | WeightedConfig | ProbabilisticConfig |
          None, optional): An existing config. Keyword arguments override its
          fields.
        - \\*\\*kwargs: Field values.

    **Returns:**

        - The config dataclass of the mode.

    **Raises:**

        - ConfigurationError: unknown mode, wrong config class, unknown field
          or invalid value.
    """
    mode = _coerce_enum(AnalysisMode, mode, "mode")
    config_cls = _CONFIG_CLASSES[mode]
    if config is not None:
        if type(config) is not config_cls:
            raise ConfigurationError(f"mode {mode.value!r} requires a {config_cls.__name__}, got {type(config).__name__}")
        if not kwargs:
            return config
        values = {f.name: getattr(config, f.name) for f in fields(config)}
    else:
        values = {}
    valid_names = {f.name for f in fields(config_cls)}
    unknown = sorted(set(kwargs) - valid_names)
    if unknown:
        raise ConfigurationError(f"unknown parameter(s) for mode {mode.value!r}: {', '.join(unknown)}")
    values.update(kwargs)
    return config_cls(**values)
