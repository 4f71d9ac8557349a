#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Mon Oct 12 15:02:31 2026

Conversion between node-value assignments, bit vectors, dense integers and
binary strings.

A state of an N-node network is stored as a Python int whose most significant
bit is the first node of the node order, so that its binary string reads in
node order and sorting states as integers sorts their strings.
"""

from dataclasses import dataclass

import numpy as np

from typing import Union, Mapping

import boolbasin.utils as utils
from boolbasin.errors import ConfigurationError


@dataclass(frozen=True)
class StateSnapshot:
    """
    A reported network state.

    **Members:**

        - binary (str): Binary string, first node first.
        - values (dict[str:int]): Node id -> 0/1.
    """
    binary: str
    values: dict

    def to_dict(self) -> dict:
        return {'binary': self.binary, 'values': dict(self.values)}


class StateCodec(object):
    """
    Encoder/decoder for the states of one network.

    **Constructor Parameters:**

        - node_order (list[str]): Node ids in bit order.
        - threshold (float, optional): Values at or above threshold count as
          on when continuous values are encoded. Default 0.5.
    """

    def __init__(self, node_order : list, threshold : float = 0.5):
        self.node_order = list(node_order)
        self.N = len(self.node_order)
        self.threshold = threshold
        self.index = {node_id: i for i, node_id in enumerate(self.node_order)}
        self.powers_of_2 = [1 << (self.N - 1 - i) for i in range(self.N)]

    def __len__(self):
        return self.N

    def binarize(self, values : Union[list, np.ndarray]) -> np.ndarray:
        """Map (possibly continuous) values to 0/1 at the threshold."""
        return (np.asarray(values, dtype=float) >= self.threshold).astype(np.uint8)

    def encode(self, assignment : Mapping) -> int:
        """
        Encode an assignment {node id: value} as a state.

        **Raises:**

            - ConfigurationError: if a node is missing or an unknown node is
              assigned.
        """
        unknown = set(assignment) - set(self.index)
        if unknown:
            raise ConfigurationError(f"assignment refers to unknown nodes {sorted(unknown)}")
        try:
            values = [assignment[node_id] for node_id in self.node_order]
        except KeyError as e:
            raise ConfigurationError(f"assignment has no value for node {e.args[0]!r}") from None
        return self.from_vector(self.binarize(values))

    def decode(self, state : int) -> dict:
        """Assignment {node id: 0/1} of a state."""
        return dict(zip(self.node_order, utils.dec2bin(state, self.N)))

    def to_vector(self, state : int) -> np.ndarray:
        return np.array(utils.dec2bin(state, self.N), dtype=np.uint8)

    def from_vector(self, X : Union[list, np.ndarray]) -> int:
        assert len(X) == self.N, f"state vector must have length {self.N}"
        return utils.bin2dec(X)

    def to_binary_string(self, state : int) -> str:
        """Binary string of a state, most significant bit (first node) first."""
        if self.N == 0:
            return ''
        return bin(state)[2:].zfill(self.N)

    def from_binary_string(self, binary : str) -> int:
        binary = binary.strip()
        if len(binary) != self.N or set(binary) - {'0', '1'}:
            raise ConfigurationError(f"'{binary}' is not a binary string of length {self.N}")
        return int(binary, 2) if self.N > 0 else 0

    def from_any(self, state) -> int:
        """
        Accept a state as int, binary string, assignment mapping or vector.
        """
        if isinstance(state, (int, np.integer)):
            state = int(state)
            if not 0 <= state < 2**self.N:
                raise ConfigurationError(f"state {state} is outside the state space of {self.N} nodes")
            return state
        if isinstance(state, str):
            return self.from_binary_string(state)
        if isinstance(state, Mapping):
            return self.encode(state)
        X = np.asarray(state)
        if X.shape != (self.N,):
            raise ConfigurationError(f"state vector must have length {self.N}, got shape {X.shape}")
        return self.from_vector(self.binarize(X))

    def snapshot(self, state : int) -> StateSnapshot:
        return StateSnapshot(self.to_binary_string(state), self.decode(state))

    def states_to_matrix(self, states : list) -> np.ndarray:
        """Stack the bit vectors of several states into an (M, N) matrix."""
        if len(states) == 0:
            return np.zeros((0, self.N), dtype=np.uint8)
        return np.array([utils.dec2bin(state, self.N) for state in states], dtype=np.uint8)

    def matrix_to_states(self, X : np.ndarray) -> list:
        """Dense integers of the rows of an (M, N) 0/1 matrix."""
        X = np.asarray(X)
        if self.N <= 62:
            powers = np.array(self.powers_of_2, dtype=np.int64)
            return (X.astype(np.int64) @ powers).tolist()
        return [utils.bin2dec(row) for row in X]
