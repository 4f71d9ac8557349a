#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import pytest

import boolbasin
from boolbasin.errors import ConfigurationError


def binaries(result):
    return [[state.binary for state in attractor.states] for attractor in result.attractors]


# ------------------------------------------------------------
# 1 Rule-based networks
# ------------------------------------------------------------

def test_knock_out_collapses_the_toggle_switch():
    nodes, rules = boolbasin.knock_out(['a', 'b'], ['a = NOT b', 'b = NOT a'], 'a')
    assert rules == [('a', '0'), ('b', 'NOT a')]
    result = boolbasin.perform_deterministic_analysis(nodes, rules)
    assert binaries(result) == [['01']]
    assert result.attractors[0].basin_size == 4


def test_inputs_are_not_modified():
    nodes = ['a', 'b']
    rules = ['a = NOT b', 'b = NOT a']
    boolbasin.knock_out(nodes, rules, ['a', 'b'])
    assert nodes == ['a', 'b']
    assert rules == ['a = NOT b', 'b = NOT a']


def test_fix_nodes():
    nodes, rules = boolbasin.fix_nodes(['a', 'b', 'c'], ['b = a', 'c = b'], {'a': 1})
    assert rules == [('a', '1'), ('b', 'a'), ('c', 'b')]
    result = boolbasin.perform_deterministic_analysis(nodes, rules)
    assert binaries(result) == [['111']]
    with pytest.raises(ConfigurationError):
        boolbasin.fix_nodes(['a'], [], {'a': 2})
    with pytest.raises(ConfigurationError):
        boolbasin.fix_nodes(['a'], [], {'z': 1})


def test_knock_in_drug_with_outward_regulation():
    nodes, rules = boolbasin.knock_in(['a', 'b'], ['a = b', 'b = a'], 'drug', value=1,
                                      outward_regulations=[('a', 'AND', 'NOT drug')])
    assert [node.id for node in nodes] == ['a', 'b', 'drug']
    assert dict(rules)['a'] == '(b) AND (NOT drug)'
    result = boolbasin.perform_deterministic_analysis(nodes, rules)
    assert binaries(result) == [['001']]
    assert result.attractors[0].basin_size == 8


def test_knock_in_existing_node_with_rule_and_label():
    nodes, rules = boolbasin.knock_in(['a', 'b'], ['b = a'], 'a', rule='NOT b')
    assert rules == [('a', 'NOT b'), ('b', 'a')]
    nodes, rules = boolbasin.knock_in(['a'], [], 'd1', label='Drug', value=0,
                                      outward_regulations=[('a', 'OR', 'Drug')])
    assert nodes[1].label == 'Drug'
    assert dict(rules)['a'] == 'Drug'


# ------------------------------------------------------------
# 2 Weighted networks
# ------------------------------------------------------------

def test_knock_out_edges():
    nodes, edges, biases = boolbasin.knock_out_edges(['a', 'b'], [('a', 'b', 1), ('b', 'a', 1)], 'a')
    assert edges == [{'source': 'a', 'target': 'b', 'weight': 1}]
    assert biases == {'a': -1.}
    result = boolbasin.perform_weighted_analysis(nodes, edges, biases=biases)
    assert binaries(result) == [['00']]
    assert result.attractors[0].basin_size == 4


def test_fix_nodes_weighted_pins_to_one():
    nodes, edges, biases = boolbasin.fix_nodes_weighted(['a', 'b'], [('b', 'a', -1), ('a', 'b', 1)], {'a': 1})
    result = boolbasin.perform_weighted_analysis(nodes, edges, biases=biases)
    assert binaries(result) == [['11']]


def test_knock_in_edges():
    nodes, edges, biases = boolbasin.knock_in_edges(['a', 'b'], [('a', 'b', 1)], 'inh', value=1,
                                                    targets={'b': -2})
    assert [node.id for node in nodes] == ['a', 'b', 'inh']
    assert biases == {'inh': 1.}
    result = boolbasin.perform_weighted_analysis(nodes, edges, biases=biases)
    assert all(state.values['b'] == 0 and state.values['inh'] == 1
               for attractor in result.attractors for state in attractor.states)
    with pytest.raises(ConfigurationError):
        boolbasin.knock_in_edges(['a'], [], 'x', targets={'a': float('inf')})
