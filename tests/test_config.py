#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import dataclasses

import pytest

from boolbasin.config import (AnalysisMode, DeterministicConfig, ProbabilisticConfig, ProbabilisticMethod,
                              TieBehavior, WeightedConfig, make_config,
                              DEFAULT_STATE_CAP, DEFAULT_STEP_CAP, MAX_NODES_DETERMINISTIC)
from boolbasin.errors import ConfigurationError


def test_defaults():
    config = DeterministicConfig()
    assert config.state_cap == DEFAULT_STATE_CAP == 100_000
    assert config.step_cap == DEFAULT_STEP_CAP == 10_000
    assert config.max_nodes == MAX_NODES_DETERMINISTIC == 20
    weighted = WeightedConfig()
    assert weighted.tie_behavior is TieBehavior.HOLD
    assert weighted.threshold_multiplier == 0.5
    probabilistic = ProbabilisticConfig()
    assert probabilistic.noise == 0.25
    assert probabilistic.degradation == 0.1
    assert probabilistic.max_iterations == 500
    assert probabilistic.tolerance == 1e-4
    assert probabilistic.method is ProbabilisticMethod.MEAN_FIELD


def test_configs_are_frozen():
    config = DeterministicConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.state_cap = 5


@pytest.mark.parametrize("kwargs", [
    dict(state_cap=0),
    dict(state_cap=-3),
    dict(step_cap=1.5),
    dict(step_cap=True),
    dict(cancel_check_interval=0),
])
def test_invalid_deterministic_config(kwargs):
    with pytest.raises(ConfigurationError):
        DeterministicConfig(**kwargs)


@pytest.mark.parametrize("kwargs", [
    dict(noise=1.5),
    dict(noise=-0.1),
    dict(degradation=2),
    dict(initial_probability=1.1),
    dict(initial_probabilities={'a': -1}),
    dict(max_iterations=0),
    dict(tolerance=0),
    dict(confirmation_window=0),
    dict(method='bogus'),
    dict(tie_behavior='sometimes'),
    dict(biases={'a': float('nan')}),
])
def test_invalid_probabilistic_config(kwargs):
    with pytest.raises(ConfigurationError):
        ProbabilisticConfig(**kwargs)


@pytest.mark.parametrize("value, expected", [
    ('hold', TieBehavior.HOLD),
    ('force-on', TieBehavior.FORCE_ON),
    ('FORCE_OFF', TieBehavior.FORCE_OFF),
    ('zero-as-one', TieBehavior.FORCE_ON),
    ('zero-as-zero', TieBehavior.FORCE_OFF),
    (TieBehavior.HOLD, TieBehavior.HOLD),
])
def test_tie_behavior_accepts_strings_and_aliases(value, expected):
    assert WeightedConfig(tie_behavior=value).tie_behavior is expected


def test_mode_aliases():
    assert AnalysisMode('Deterministic') is AnalysisMode.DETERMINISTIC
    assert AnalysisMode('boolean') is AnalysisMode.DETERMINISTIC
    assert AnalysisMode('threshold') is AnalysisMode.WEIGHTED
    assert ProbabilisticMethod('monte-carlo') is ProbabilisticMethod.SAMPLING


def test_make_config():
    config = make_config('deterministic', state_cap=10)
    assert isinstance(config, DeterministicConfig)
    assert config.state_cap == 10
    overridden = make_config(AnalysisMode.DETERMINISTIC, config, step_cap=3)
    assert (overridden.state_cap, overridden.step_cap) == (10, 3)
    assert make_config('deterministic', config) is config


def test_make_config_rejects_unknown_fields_and_wrong_classes():
    with pytest.raises(ConfigurationError):
        make_config('deterministic', noise=0.1)
    with pytest.raises(ConfigurationError):
        make_config('weighted', DeterministicConfig())
    with pytest.raises(ConfigurationError):
        make_config('unknown-mode')
