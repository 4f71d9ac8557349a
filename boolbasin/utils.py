#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Created on Mon Oct 12 10:14:02 2026

Small numerical helpers shared by the compiler, the codec and the explorers.
"""


##Imports
from __future__ import annotations
import numpy as np
import random as _py_random
from numpy.random import Generator as _NPGen, RandomState as _NPRandomState, SeedSequence, default_rng

from typing import Union

def _coerce_rng(rng : Union[int, _NPGen, _NPRandomState, _py_random.Random, None] = None) -> _NPGen:
    """
    Return a NumPy Generator given a variety of rng-like inputs.

    **Accepts:**

      - None                -> default_rng()
      - int (seed)          -> default_rng(seed)
      - np.random.Generator -> returned as-is
      - np.random.RandomState -> converted via SeedSequence
      - random.Random       -> converted via SeedSequence

    **Raises:**

        - TypeError: for unsupported inputs.
    """
    if rng is None:
        return default_rng()
    if isinstance(rng, _NPGen):
        return rng
    if isinstance(rng, (int, np.integer)):
        return default_rng(int(rng))
    if isinstance(rng, _NPRandomState):
        # derive entropy from the legacy RNG
        entropy = rng.randint(0, 2**32, size=4, dtype=np.uint32)
        return default_rng(SeedSequence(entropy))
    if isinstance(rng, _py_random.Random):
        entropy = [rng.getrandbits(32) for _ in range(4)]
        return default_rng(SeedSequence(entropy))
    raise TypeError(f"Unsupported rng type: {type(rng)!r}")


def bin2dec(binary_vector : Union[list, np.ndarray]) -> int:
    """
    Convert a binary vector to an integer, the first entry being the most
    significant bit.

    **Parameters:**

        - binary_vector (list[int] | np.ndarray[int]): Binary digits (0 or 1).

    **Returns:**

        - int: Integer value converted from the binary vector. Python integers
          are unbounded, so vectors longer than 64 entries are supported.
    """
    decimal = 0
    for bit in binary_vector:
        decimal = (decimal << 1) | int(bit)
    return int(decimal)


def dec2bin(integer_value : int, num_bits : int) -> list:
    """
    Convert an integer to a binary vector of fixed width.

    **Parameters:**

        - integer_value (int): Integer value to be converted.
        - num_bits (int): Number of bits in the binary representation.

    **Returns:**

        - list[int]: List containing binary digits (0 or 1), most significant
          bit first.
    """
    if num_bits == 0:
        return []
    binary_string = bin(integer_value)[2:].zfill(num_bits)
    return [int(bit) for bit in binary_string]


left_side_of_truth_tables = {}

# tables for larger N are rebuilt on every call
MAX_MEMOIZED_TRUTH_TABLE_SIZE = 16

def get_left_side_of_truth_table(N : int) -> np.ndarray:
    """
    All 2^N binary vectors of length N as rows of a uint8 matrix, in
    increasing order of their integer value (row i is dec2bin(i, N)).
    Results are memoized per N up to MAX_MEMOIZED_TRUTH_TABLE_SIZE; the
    returned array is shared and must not be modified.
    """
    if N in left_side_of_truth_tables:
        left_side_of_truth_table = left_side_of_truth_tables[N]
    else:
        vals = np.arange(2**N, dtype=np.uint64)[:, None]              # shape (2^n, 1)
        masks = (np.uint64(1) << np.arange(N-1, -1, -1, dtype=np.uint64))[None]  # shape (1, n)
        left_side_of_truth_table = ((vals & masks) != 0).astype(np.uint8)
        if N <= MAX_MEMOIZED_TRUTH_TABLE_SIZE:
            left_side_of_truth_tables[N] = left_side_of_truth_table
    return left_side_of_truth_table


def sample_distinct_states(N : int, count : int, *, rng=None,
    max_attempts : Union[int, None] = None) -> list:
    """
    Draw up to count distinct states of an N-node network uniformly at random.

    **Parameters:**

        - N (int): Number of nodes (bits per state).
        - count (int): Number of distinct states requested. Must not exceed 2^N.
        - rng (None, optional): Argument for the random number generator,
          implemented in 'utils._coerce_rng'.
        - max_attempts (int | None, optional): Upper bound on the number of
          random draws. Defaults to max(10000, 10*count).

    **Returns:**

        - list[int]: Distinct states in decimal form, in the order they were
          drawn. If random draws keep colliding, the remainder is filled with
          the smallest unused states so that exactly count states are returned.
    """
    assert count <= 2**N, "cannot sample more distinct states than the state space holds"
    rng = _coerce_rng(rng)
    if max_attempts is None:
        max_attempts = max(10000, 10 * count)
    seen = set()
    states = []
    attempts = 0
    powers = [1 << (N - 1 - i) for i in range(N)]
    while len(states) < count and attempts < max_attempts:
        batch = rng.integers(2, size=(min(count - len(states), 4096), N))
        for row in batch:
            attempts += 1
            xdec = sum(p for p, bit in zip(powers, row) if bit)
            if xdec not in seen:
                seen.add(xdec)
                states.append(xdec)
                if len(states) == count:
                    break
    xdec = 0
    while len(states) < count:
        if xdec not in seen:
            seen.add(xdec)
            states.append(xdec)
        xdec += 1
    return states


def is_cancelled(cancel) -> bool:
    """
    Evaluate a cancellation signal. Accepts None (never cancelled), a callable
    returning a truthy value, or any object exposing is_set() such as
    threading.Event.
    """
    if cancel is None:
        return False
    if hasattr(cancel, 'is_set'):
        return bool(cancel.is_set())
    return bool(cancel())


def max_norm(x : np.ndarray, y : np.ndarray) -> float:
    if len(x) == 0:
        return 0.
    return float(np.max(np.abs(np.asarray(x, dtype=float) - np.asarray(y, dtype=float))))
