#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import numpy as np
import pytest

import boolbasin
from boolbasin.config import TieBehavior
from boolbasin.dynamics import WeightedDynamics, compute_threshold, edges_to_matrix, get_in_degree, matrix_to_edges
from boolbasin.errors import ConfigurationError


def binaries(result):
    return [[state.binary for state in attractor.states] for attractor in result.attractors]


# ------------------------------------------------------------
# 1 Threshold update
# ------------------------------------------------------------

def test_threshold_floors_the_in_degree_at_one():
    assert compute_threshold(0.2) == 0.5
    assert compute_threshold(4., 0.5) == 2.
    assert list(compute_threshold(np.array([0., 3.]), 1.)) == [1., 3.]


def test_edge_formats_and_matrix():
    nodes = ['a', 'b', 'c']
    W = edges_to_matrix(nodes, [('a', 'b', -2), {'source': 'b', 'target': 'c'}, ('c', 'c')])
    assert W[1, 0] == -2 and W[2, 1] == 1 and W[2, 2] == 1
    assert np.count_nonzero(W) == 3
    assert [get_in_degree(W, i) for i in range(3)] == [0., 2., 2.]
    assert matrix_to_edges(nodes, W)[0] == {'source': 'a', 'target': 'b', 'weight': -2.}


def test_edges_to_unknown_nodes_are_rejected():
    with pytest.raises(ConfigurationError):
        edges_to_matrix(['a'], [('a', 'z', 1)])
    with pytest.raises(ConfigurationError):
        edges_to_matrix(['a'], [('a', 'a', 'strong')])
    with pytest.raises(ConfigurationError):
        edges_to_matrix(['a'], [('a',)])


@pytest.mark.parametrize("tie_behavior, expected", [
    ('hold', [(['00'], 2), (['10'], 1), (['11'], 1)]),
    ('force-on', [(['00'], 2), (['11'], 2)]),
    ('force-off', [(['00'], 2), (['10'], 2)]),
])
def test_tie_policies(tie_behavior, expected):
    # the input of b equals its threshold exactly when a is on
    result = boolbasin.perform_weighted_analysis(['a', 'b'], [('a', 'b', 1)],
                                                 threshold_multiplier=1., tie_behavior=tie_behavior)
    assert [(states, a.basin_size) for states, a in zip(binaries(result), result.attractors)] == expected


@pytest.mark.parametrize("threshold_multiplier, function", [
    (1., lambda a, b: a & b),
    (0.5, lambda a, b: a | b),
])
def test_and_or_as_threshold_functions(threshold_multiplier, function):
    dynamics = WeightedDynamics(['a', 'b', 'c'], [('a', 'c', 1), ('b', 'c', 1)],
                                threshold_multiplier=threshold_multiplier, tie_behavior=TieBehavior.FORCE_ON)
    X = boolbasin.get_left_side_of_truth_table(3)
    FX = dynamics.compute_next_vector(X)
    assert np.array_equal(FX[:, :2], X[:, :2]), "input nodes keep their value"
    assert list(FX[:, 2]) == [function(x[0], x[1]) for x in X]


def test_inhibition_and_bias():
    dynamics = WeightedDynamics(['a', 'b'], [('a', 'b', -1)], biases={'b': 1})
    assert list(dynamics.is_input) == [True, False]
    assert dynamics.compute_next_state(0b00) == 0b01
    assert dynamics.compute_next_state(0b10) == 0b10


def test_transition_table_matches_single_steps():
    rng = np.random.default_rng(3)
    nodes = [f'n{i}' for i in range(6)]
    edges = [(nodes[i], nodes[j], float(rng.choice([-2, -1, 1, 2])))
             for i in range(6) for j in range(6) if rng.random() < 0.4]
    dynamics = WeightedDynamics(nodes, edges, tie_behavior='hold')
    table = dynamics.compute_transition_table()
    assert all(table[x] == dynamics.compute_next_state(x) for x in range(64))


# ------------------------------------------------------------
# 2 Analysis
# ------------------------------------------------------------

def test_negative_feedback_loop_oscillates():
    nodes = ['a', 'b']
    result = boolbasin.perform_weighted_analysis(nodes, [('a', 'b', 1), ('b', 'a', -1)], biases={'a': 1})
    assert result.mode == 'weighted'
    assert sum(a.basin_size for a in result.attractors) == 4
    assert result.get_cycles() != []
    assert result.get_cycles()[0].period == 4


def test_basins_cover_the_state_space():
    rng = np.random.default_rng(11)
    nodes = [f'n{i}' for i in range(8)]
    edges = [(nodes[i], nodes[j], float(rng.integers(-2, 3)))
             for i in range(8) for j in range(8) if rng.random() < 0.3]
    result = boolbasin.perform_weighted_analysis(nodes, edges)
    assert not result.truncated
    assert result.explored_state_count == 256
    assert sum(a.basin_size for a in result.attractors) == 256


def test_node_order_does_not_change_attractor_membership():
    rng = np.random.default_rng(11)
    nodes = [f'n{i}' for i in range(8)]
    edges = [(nodes[i], nodes[j], float(rng.integers(-2, 3)))
             for i in range(8) for j in range(8) if rng.random() < 0.3]
    permuted = [nodes[i] for i in (3, 7, 0, 5, 1, 6, 2, 4)]
    original = boolbasin.perform_weighted_analysis(nodes, edges, biases={'n2': 1})
    reordered = boolbasin.perform_weighted_analysis(permuted, edges, biases={'n2': 1})

    def memberships(result):
        return {(frozenset(frozenset(state.values.items()) for state in a.states), a.basin_size)
                for a in result.attractors}

    assert reordered.node_order == tuple(permuted)
    assert memberships(reordered) == memberships(original)
    assert len(reordered.attractors) == len(original.attractors)


def test_wiring_diagram_of_weighted_network():
    dynamics = WeightedDynamics(['a', 'b', 'c'], [('a', 'b', 1), ('b', 'c', -1), ('c', 'a', 2)])
    wd = dynamics.get_wiring_diagram()
    assert wd.get_feedback_modules() == [{'a', 'b', 'c'}]
    assert list(wd.get_input_nodes()) == []
    assert sorted(dynamics.get_edges(), key=lambda e: e['source'])[2]['weight'] == 2.


def test_unknown_bias_node():
    with pytest.raises(ConfigurationError):
        boolbasin.perform_weighted_analysis(['a'], [], biases={'z': 1})


def test_weighted_node_ceiling():
    nodes = [f'n{i}' for i in range(65)]
    with pytest.raises(ConfigurationError):
        boolbasin.perform_weighted_analysis(nodes, [])


def test_large_weighted_network_is_sampled():
    nodes = [f'n{i}' for i in range(30)]
    edges = [(nodes[i], nodes[(i + 1) % 30], 1) for i in range(30)]
    result = boolbasin.perform_weighted_analysis(nodes, edges, state_cap=50, seed=5)
    assert result.truncated
    assert result.total_state_space == 2**30
    assert result.sampled_state_count == 50
    assert sum(a.basin_size for a in result.attractors) == result.explored_state_count


def test_analyze_dispatches_to_weighted_mode():
    result = boolbasin.analyze(['a', 'b'], 'weighted', edges=[('a', 'b', 1)])
    assert result.mode == 'weighted'
    with pytest.raises(ConfigurationError):
        boolbasin.analyze(['a', 'b'], 'weighted', rules=['a = b'])


@pytest.mark.parametrize("threshold_multiplier, operator", [
    (1., 'AND'),
    (0.5, 'OR'),
])
def test_weighted_network_reproduces_the_boolean_network(threshold_multiplier, operator):
    nodes = ['a', 'b', 'c']
    edges = [('a', 'c', 1), ('b', 'c', 1), ('c', 'a', 1), ('c', 'b', 1)]
    weighted = boolbasin.perform_weighted_analysis(nodes, edges, threshold_multiplier=threshold_multiplier,
                                                   tie_behavior='force-on')
    boolean = boolbasin.perform_deterministic_analysis(nodes, [f'c = a {operator} b', 'a = c', 'b = c'])
    assert [(a.encoded_states, a.basin_size) for a in weighted.attractors] == \
           [(a.encoded_states, a.basin_size) for a in boolean.attractors]
