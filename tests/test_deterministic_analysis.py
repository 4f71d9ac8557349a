#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import threading

import pytest

import boolbasin
from boolbasin.attractors import AttractorAggregator
from boolbasin.dynamics import BooleanDynamics
from boolbasin.errors import ConfigurationError, ParseError
from boolbasin.explorer import explore_trajectories
from boolbasin.expression import RuleSet


EIGHT_NODES = [f'x{i}' for i in range(8)]
EIGHT_RULES = [
    'x0 = x1 AND NOT x7',
    'x1 = x0 OR x2',
    'x2 = NOT x3',
    'x3 = x2 XOR x4',
    'x4 = x5',
    'x5 = x4 AND x6',
    'x6 = NOT x6 OR x0',
    'x7 = x3 NOR x5',
]


def ring(N):
    """Each node copies its predecessor: cycles of every period dividing N."""
    nodes = [f'r{i}' for i in range(N)]
    rules = [f'r{i} = r{(i - 1) % N}' for i in range(N)]
    return nodes, rules


def binaries(attractor):
    return [state.binary for state in attractor.states]


# ------------------------------------------------------------
# 1 Small exhaustive cases
# ------------------------------------------------------------

def test_mutual_inhibition():
    result = boolbasin.perform_deterministic_analysis(['a', 'b'], ['a = NOT b', 'b = NOT a'])
    assert result.total_state_space == 4
    assert result.explored_state_count == result.sampled_state_count == 4
    assert not result.truncated
    assert result.warnings == ()
    assert [binaries(a) for a in result.attractors] == [['00', '11'], ['01'], ['10']]
    cycle, first, second = result.attractors
    assert (cycle.type, cycle.period, cycle.basin_size, cycle.basin_share) == ('cycle', 2, 2, 0.5)
    assert (first.type, first.basin_size, first.basin_share) == ('fixed-point', 1, 0.25)
    assert (second.type, second.basin_size) == ('fixed-point', 1)


def test_mutual_activation():
    result = boolbasin.perform_deterministic_analysis(['a', 'b'], ['a = b', 'b = a'])
    assert [binaries(a) for a in result.attractors] == [['01', '10'], ['00'], ['11']]
    cycle = result.attractors[0]
    assert (cycle.type, cycle.period, cycle.basin_size, cycle.basin_share) == ('cycle', 2, 2, 0.5)
    assert cycle.states[0].values == {'a': 0, 'b': 1}


def test_frozen_node_keeps_its_value():
    result = boolbasin.perform_deterministic_analysis(['a', 'b', 'c'], ['b = a', 'c = b'])
    assert [binaries(a) for a in result.attractors] == [['000'], ['111']]
    assert [a.basin_size for a in result.attractors] == [4, 4]
    assert all(a.is_fixed_point for a in result.attractors)


def test_frozen_node_keeps_its_value_in_every_attractor():
    result = boolbasin.perform_deterministic_analysis(['a', 'b'], ['a = NOT a'], initial_states=['01', '11'])
    assert [binaries(a) for a in result.attractors] == [['01', '11']]
    assert all(state.values['b'] == 1 for a in result.attractors for state in a.states)


def test_constant_rules():
    result = boolbasin.perform_deterministic_analysis(['a', 'b'], ['a = 1', 'b = FALSE'])
    assert [binaries(a) for a in result.attractors] == [['10']]
    assert result.attractors[0].basin_size == 4


def test_labels_are_reported_and_resolved():
    nodes = [{'id': 'n1', 'label': 'Akt'}, ('n2', 'mTOR')]
    result = boolbasin.perform_deterministic_analysis(nodes, ['mtor = akt', 'Akt = Akt'])
    assert result.node_order == ('n1', 'n2')
    assert result.node_labels == {'n1': 'Akt', 'n2': 'mTOR'}
    assert [binaries(a) for a in result.attractors] == [['00'], ['11']]


# ------------------------------------------------------------
# 2 Properties
# ------------------------------------------------------------

def test_basin_conservation_and_validity_of_attractors():
    result = boolbasin.perform_deterministic_analysis(EIGHT_NODES, EIGHT_RULES)
    assert result.explored_state_count == 256
    assert sum(a.basin_size for a in result.attractors) == result.explored_state_count
    assert sum(a.basin_share for a in result.attractors) == pytest.approx(1.0)

    dynamics = BooleanDynamics(RuleSet(EIGHT_NODES, EIGHT_RULES))
    for attractor in result.attractors:
        states = attractor.encoded_states
        assert len(set(states)) == attractor.period
        assert states[0] == min(states)
        for i, state in enumerate(states):
            assert dynamics.compute_next_state(state) == states[(i + 1) % attractor.period], (
                "attractor states must follow the transition function"
            )
        if attractor.type == 'fixed-point':
            assert attractor.period == 1


def test_attractors_are_sorted_by_basin_size_then_key():
    result = boolbasin.perform_deterministic_analysis(EIGHT_NODES, EIGHT_RULES)
    keys = [(-a.basin_size, a.key) for a in result.attractors]
    assert keys == sorted(keys)


def attractor_memberships(result):
    """Attractors as sets of node-value assignments, independent of node order."""
    return {(frozenset(frozenset(state.values.items()) for state in a.states), a.basin_size)
            for a in result.attractors}


def test_node_order_does_not_change_attractor_membership():
    permuted = [EIGHT_NODES[i] for i in (5, 2, 7, 0, 3, 6, 1, 4)]
    original = boolbasin.perform_deterministic_analysis(EIGHT_NODES, EIGHT_RULES)
    reordered = boolbasin.perform_deterministic_analysis(permuted, EIGHT_RULES)
    assert reordered.node_order == tuple(permuted)
    assert attractor_memberships(reordered) == attractor_memberships(original)
    assert sorted(a.basin_size for a in reordered.attractors) == sorted(a.basin_size for a in original.attractors)


def test_transition_table_matches_single_steps():
    dynamics = BooleanDynamics(RuleSet(EIGHT_NODES, EIGHT_RULES))
    table = dynamics.compute_transition_table()
    assert all(table[x] == dynamics.compute_next_state(x) for x in range(256))


def test_results_are_reproducible_with_a_seed():
    nodes, rules = ring(12)
    first = boolbasin.perform_deterministic_analysis(nodes, rules, state_cap=200, seed=42)
    second = boolbasin.perform_deterministic_analysis(nodes, rules, state_cap=200, seed=42)
    assert first.to_dict() == second.to_dict()


def test_chunked_exploration_merges_to_the_full_result():
    dynamics = BooleanDynamics(RuleSet(EIGHT_NODES, EIGHT_RULES))
    aggregator = AttractorAggregator(dynamics.codec)
    for start in range(0, 256, 64):
        aggregator.add_run(explore_trajectories(dynamics, range(start, start + 64), 1000))
    full = boolbasin.perform_deterministic_analysis(EIGHT_NODES, EIGHT_RULES)
    merged = aggregator.get_attractors()
    assert [(a.encoded_states, a.basin_size) for a in merged] == \
           [(a.encoded_states, a.basin_size) for a in full.attractors]


# ------------------------------------------------------------
# 3 Caps, truncation and cancellation
# ------------------------------------------------------------

def test_state_cap_samples_and_flags_truncation():
    nodes, rules = ring(12)
    result = boolbasin.perform_deterministic_analysis(nodes, rules, state_cap=100, seed=1)
    assert result.truncated
    assert result.total_state_space == 4096
    assert result.sampled_state_count == 100
    assert result.explored_state_count == 100
    assert any('state cap' in warning for warning in result.warnings)


def test_step_cap_leaves_states_unresolved():
    nodes, rules = ring(10)
    result = boolbasin.perform_deterministic_analysis(nodes, rules, step_cap=3)
    assert result.truncated
    assert result.unresolved_states > 0
    assert result.explored_state_count + result.unresolved_states == result.sampled_state_count == 1024
    assert sum(a.basin_size for a in result.attractors) == result.explored_state_count
    assert all(a.period <= 3 for a in result.attractors), "no attractor may be fabricated"
    assert any('Step cap' in warning for warning in result.warnings)


def test_explicit_initial_states():
    result = boolbasin.perform_deterministic_analysis(['a', 'b'], ['a = NOT b', 'b = NOT a'],
                                                      initial_states=['11', {'a': 0, 'b': 1}])
    assert result.sampled_state_count == 2
    assert result.truncated
    assert [binaries(a) for a in result.attractors] == [['00', '11'], ['01']]
    assert [a.basin_share for a in result.attractors] == [0.5, 0.5]


def test_cancellation_before_start():
    nodes, rules = ring(6)
    result = boolbasin.perform_deterministic_analysis(nodes, rules, cancel=lambda: True)
    assert result.cancelled and result.truncated
    assert result.sampled_state_count == 0
    assert result.attractors == ()
    assert any('cancelled' in warning for warning in result.warnings)


def test_cancellation_with_event_returns_partial_result():
    nodes, rules = ring(6)
    event = threading.Event()
    calls = []
    def cancel():
        calls.append(1)
        if len(calls) == 3:
            event.set()
        return event.is_set()
    result = boolbasin.perform_deterministic_analysis(nodes, rules, cancel=cancel)
    assert result.cancelled
    assert result.sampled_state_count == 2
    assert sum(a.basin_size for a in result.attractors) == result.explored_state_count == 2

    event_result = boolbasin.perform_deterministic_analysis(nodes, rules, cancel=event)
    assert event_result.cancelled and event_result.sampled_state_count == 0


# ------------------------------------------------------------
# 4 Validation
# ------------------------------------------------------------

def test_node_ceiling():
    nodes = [f'n{i}' for i in range(21)]
    with pytest.raises(ConfigurationError):
        boolbasin.perform_deterministic_analysis(nodes, [])


def test_empty_network():
    result = boolbasin.perform_deterministic_analysis([], [])
    assert result.attractors == ()
    assert result.warnings == ("No nodes supplied; analysis skipped.",)


def test_parse_errors_raise_before_simulation():
    with pytest.raises(ParseError):
        boolbasin.perform_deterministic_analysis(['a', 'b'], ['a = b AND c'])


def test_duplicate_node_ids():
    with pytest.raises(ConfigurationError):
        boolbasin.perform_deterministic_analysis(['a', 'a'], [])


def test_analyze_dispatch():
    direct = boolbasin.perform_deterministic_analysis(['a', 'b'], ['a = b', 'b = a'])
    dispatched = boolbasin.analyze(['a', 'b'], 'deterministic', rules=['a = b', 'b = a'])
    assert direct.to_dict() == dispatched.to_dict()
    with pytest.raises(ConfigurationError):
        boolbasin.analyze(['a'], 'deterministic', edges=[('a', 'a', 1)])
    with pytest.raises(ConfigurationError):
        boolbasin.analyze(['a'], 'sideways')


# ------------------------------------------------------------
# 5 Export
# ------------------------------------------------------------

def test_to_dict_uses_camel_case():
    result = boolbasin.perform_deterministic_analysis(['a', 'b'], ['a = NOT b', 'b = NOT a'])
    d = result.to_dict()
    assert d['nodeOrder'] == ['a', 'b']
    assert d['exploredStateCount'] == 4
    assert d['totalStateSpace'] == 4
    assert d['attractors'][0]['basinSize'] == 2
    assert d['attractors'][0]['id'] == 0
    assert 'probabilities' not in d


def test_dataframe_columns_follow_node_order():
    nodes = ['z', 'a', 'm']
    result = boolbasin.perform_deterministic_analysis(nodes, ['z = a', 'a = m', 'm = z'])
    df = result.to_dataframe()
    assert list(df.columns[-3:]) == nodes
    assert len(df) == sum(a.period for a in result.attractors)
    csv = result.to_csv()
    assert csv.splitlines()[0].endswith('binary,z,a,m')


def test_state_transition_graph():
    result = boolbasin.perform_deterministic_analysis(['a', 'b'], ['a = NOT b', 'b = NOT a'], record_stg=True)
    G = result.get_state_transition_graph()
    assert sorted(G.nodes) == [0, 1, 2, 3]
    assert G.has_edge(0, 3) and G.has_edge(3, 0) and G.has_edge(1, 1)
    assert G.nodes[3]['attractor'] == 0 and G.nodes[3]['in_attractor']
    assert G.nodes[2]['binary'] == '10'


def test_summary_mentions_every_attractor():
    result = boolbasin.perform_deterministic_analysis(['a', 'b'], ['a = b', 'b = a'])
    summary = result.summary()
    assert '01 -> 10' in summary
    assert summary.count('fixed-point') == 2
    assert 'feedback modules: a, b' in summary
    assert 'feedback modules: none' in boolbasin.perform_deterministic_analysis(['a', 'b'], ['b = a']).summary()
