#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import numpy as np
import pytest

import boolbasin
import boolbasin.utils as utils
from boolbasin.errors import ConfigurationError
from boolbasin.state_codec import StateCodec


def test_first_node_is_most_significant_bit():
    codec = StateCodec(['a', 'b', 'c'])
    assert codec.encode({'a': 1, 'b': 0, 'c': 0}) == 4
    assert codec.to_binary_string(4) == '100'
    assert codec.decode(1) == {'a': 0, 'b': 0, 'c': 1}


def test_encode_binarizes_continuous_values():
    codec = StateCodec(['a', 'b', 'c'])
    assert codec.encode({'a': 0.5, 'b': 0.49, 'c': 0.9}) == 0b101
    assert list(codec.binarize([0.2, 0.5, 1.])) == [0, 1, 1]
    assert StateCodec(['a'], threshold=0.8).encode({'a': 0.7}) == 0


def test_encode_rejects_missing_and_unknown_nodes():
    codec = StateCodec(['a', 'b'])
    with pytest.raises(ConfigurationError):
        codec.encode({'a': 1})
    with pytest.raises(ConfigurationError):
        codec.encode({'a': 1, 'b': 0, 'z': 1})


def test_binary_string_conversion():
    codec = StateCodec(['a', 'b', 'c', 'd'])
    for state in range(16):
        assert codec.from_binary_string(codec.to_binary_string(state)) == state
    with pytest.raises(ConfigurationError):
        codec.from_binary_string('101')
    with pytest.raises(ConfigurationError):
        codec.from_binary_string('10a1')


def test_from_any():
    codec = StateCodec(['a', 'b'])
    assert codec.from_any(2) == 2
    assert codec.from_any(np.int64(3)) == 3
    assert codec.from_any('01') == 1
    assert codec.from_any({'a': 1, 'b': 1}) == 3
    assert codec.from_any([1, 0]) == 2
    with pytest.raises(ConfigurationError):
        codec.from_any(4)
    with pytest.raises(ConfigurationError):
        codec.from_any([1, 0, 1])


def test_states_beyond_64_bits():
    N = 70
    codec = StateCodec([f'x{i}' for i in range(N)])
    X = np.zeros(N, dtype=np.uint8)
    X[0] = 1
    X[-1] = 1
    state = codec.from_vector(X)
    assert state == 2**(N - 1) + 1
    assert np.array_equal(codec.to_vector(state), X)
    assert codec.matrix_to_states(np.array([X])) == [state]


def test_matrix_conversion():
    codec = StateCodec(['a', 'b', 'c'])
    states = [0, 5, 7, 2]
    X = codec.states_to_matrix(states)
    assert X.shape == (4, 3)
    assert codec.matrix_to_states(X) == states
    assert codec.states_to_matrix([]).shape == (0, 3)


def test_snapshot():
    codec = StateCodec(['x', 'y'])
    snapshot = codec.snapshot(1)
    assert snapshot.binary == '01'
    assert snapshot.values == {'x': 0, 'y': 1}
    assert snapshot.to_dict() == {'binary': '01', 'values': {'x': 0, 'y': 1}}


def test_bit_helpers():
    assert boolbasin.bin2dec([1, 0, 1]) == 5
    assert boolbasin.dec2bin(5, 4) == [0, 1, 0, 1]
    assert boolbasin.dec2bin(0, 0) == []
    left_side = boolbasin.get_left_side_of_truth_table(3)
    assert left_side.shape == (8, 3)
    assert all(boolbasin.bin2dec(row) == i for i, row in enumerate(left_side))


def test_only_small_truth_tables_are_memoized():
    small = boolbasin.get_left_side_of_truth_table(4)
    assert boolbasin.get_left_side_of_truth_table(4) is small
    N = utils.MAX_MEMOIZED_TRUTH_TABLE_SIZE + 1
    large = boolbasin.get_left_side_of_truth_table(N)
    assert large.shape == (2**N, N)
    assert N not in utils.left_side_of_truth_tables


def test_sample_distinct_states_is_reproducible():
    first = boolbasin.sample_distinct_states(16, 500, rng=7)
    second = boolbasin.sample_distinct_states(16, 500, rng=np.random.default_rng(7))
    assert first == second
    assert len(set(first)) == 500
    assert all(0 <= x < 2**16 for x in first)


def test_sample_distinct_states_fills_up_when_draws_collide():
    states = boolbasin.sample_distinct_states(3, 8, rng=0, max_attempts=1)
    assert sorted(states) == list(range(8))
