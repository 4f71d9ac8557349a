#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Tue Oct 13 09:12:50 2026

Synchronous transition functions.

Every dynamics object exposes the same small interface used by the explorer:

    - N, node_order
    - compute_next_state(xdec) -> int
    - compute_next_vector(X) -> np.array
    - compute_transition_table() -> np.array of the successor of every state

BooleanDynamics evaluates compiled rules, WeightedDynamics thresholds a
weighted sum of the inputs. Which one is used is selected by the analysis
mode, see analysis.py.
"""

import logging
import math

import numpy as np

from typing import Union, Optional, Mapping

from boolbasin.config import TieBehavior, TIE_TOLERANCE
from boolbasin.errors import ConfigurationError, ParseError
from boolbasin.expression import RuleSet, NodeResolver
from boolbasin.state_codec import StateCodec
from boolbasin.wiring_diagram import WiringDiagram
import boolbasin.utils as utils

logger = logging.getLogger(__name__)

# above this many nodes compute_transition_table refuses to build the full table
MAX_NODES_TRANSITION_TABLE = 22


class BooleanDynamics(object):
    """
    Exact Boolean synchronous dynamics given by compiled update rules.

    **Constructor Parameters:**

        - rule_set (RuleSet): The compiled rules of the network.

    **Members:**

        - rule_set (RuleSet): As passed by the constructor.
        - N (int): Number of nodes.
        - node_order (list[str]): Node ids in bit order.
        - codec (StateCodec): Codec of the network's states.
    """

    def __init__(self, rule_set : RuleSet):
        self.rule_set = rule_set
        self.nodes = rule_set.nodes
        self.N = rule_set.N
        self.node_order = [node.id for node in rule_set.nodes]
        self.codec = StateCodec(self.node_order)

    def compute_next_vector(self, X : Union[list, np.ndarray]) -> np.ndarray:
        return self.rule_set.update_network_synchronously(X)

    def compute_next_state(self, xdec : int) -> int:
        X = utils.dec2bin(xdec, self.N)
        return utils.bin2dec(self.rule_set.update_network_synchronously(X))

    def compute_transition_table(self) -> np.ndarray:
        """
        Successor of every one of the 2^N states, computed in vectorized form:
        entry i is the decimal representation of F(dec2bin(i)).
        """
        assert self.N <= MAX_NODES_TRANSITION_TABLE, "state space too large for a full transition table"
        states = utils.get_left_side_of_truth_table(self.N)
        next_states = self.rule_set.update_many(states)
        powers_of_two = 2 ** np.arange(self.N, dtype=np.int64)[::-1]
        return next_states.astype(np.int64) @ powers_of_two

    def get_wiring_diagram(self) -> WiringDiagram:
        return self.rule_set.get_wiring_diagram()


def _edge_fields(edge, index : int):
    if isinstance(edge, dict):
        if 'source' not in edge or 'target' not in edge:
            raise ConfigurationError(f"edge #{index} {edge!r} needs a source and a target")
        weight = edge.get('weight')
        return edge['source'], edge['target'], 1.0 if weight is None else weight
    if isinstance(edge, (tuple, list)) and len(edge) in (2, 3):
        weight = edge[2] if len(edge) == 3 else 1.0
        return edge[0], edge[1], 1.0 if weight is None else weight
    raise ConfigurationError(f"cannot interpret edge #{index}: {edge!r}")


def edges_to_matrix(nodes : list, edges : list) -> np.ndarray:
    """
    Aggregate an edge list into a weight matrix.

    **Parameters:**

        - nodes (list): Node list (see wiring_diagram.normalize_nodes). Edge
          endpoints are resolved like rule identifiers.
        - edges (list): Each edge is a dict {'source', 'target', 'weight'} or
          a tuple (source, target[, weight]). Missing weights default to 1.
          Zero or non-finite weights are ignored; parallel edges add up.

    **Returns:**

        - np.array[float]: W of shape (N, N) with W[target, source] the total
          weight of the regulation of target by source.

    **Raises:**

        - ConfigurationError: unknown endpoint or malformed edge.
    """
    resolver = nodes if isinstance(nodes, NodeResolver) else NodeResolver(nodes)
    N = len(resolver)
    W = np.zeros((N, N), dtype=float)
    for index, edge in enumerate([] if edges is None else edges):
        source, target, weight = _edge_fields(edge, index)
        try:
            source_index = resolver.resolve(source)
            target_index = resolver.resolve(target)
        except ParseError as e:
            raise ConfigurationError(f"edge #{index} ({source} -> {target}): {e.reason}") from None
        try:
            weight = float(weight)
        except (TypeError, ValueError):
            raise ConfigurationError(f"edge #{index} ({source} -> {target}) has a non-numeric weight {weight!r}") from None
        if not math.isfinite(weight) or weight == 0:
            continue
        W[target_index, source_index] += weight
    return W


def matrix_to_edges(node_order : list, W : np.ndarray) -> list:
    """
    Convert a weight matrix back to an edge list (zero entries are omitted).

    **Returns:**

        - list[dict]: Edges {'source', 'target', 'weight'} ordered by target,
          then source.
    """
    W = np.asarray(W, dtype=float)
    edges = []
    for target in range(W.shape[0]):
        for source in range(W.shape[1]):
            if W[target, source] != 0:
                edges.append({'source': node_order[source], 'target': node_order[target],
                              'weight': float(W[target, source])})
    return edges


def get_in_degree(W : np.ndarray, node_index : int) -> float:
    """Sum of the absolute incoming weights of a node."""
    return float(np.sum(np.abs(np.asarray(W)[node_index])))


def compute_threshold(in_degree : Union[float, np.ndarray], threshold_multiplier : float = 0.5) -> Union[float, np.ndarray]:
    """
    Threshold of a node: threshold_multiplier times its absolute in-degree,
    the in-degree being floored at 1 so that nodes with weak or no input keep
    a non-degenerate threshold.
    """
    return np.maximum(in_degree, 1.) * threshold_multiplier


def apply_threshold(raw : np.ndarray, thresholds : np.ndarray, previous : np.ndarray,
                    tie_behavior : TieBehavior) -> np.ndarray:
    """
    Step function with an explicit tie policy.

    **Parameters:**

        - raw (np.array[float]): Weighted inputs, shape (..., N).
        - thresholds (np.array[float]): Threshold per node, shape (N,).
        - previous (np.array): Current values, used by TieBehavior.HOLD.
        - tie_behavior (TieBehavior): Policy when raw equals the threshold
          (within config.TIE_TOLERANCE).

    **Returns:**

        - np.array[uint8]: Next values.
    """
    above = raw > thresholds + TIE_TOLERANCE
    tie = np.abs(raw - thresholds) <= TIE_TOLERANCE
    if tie_behavior is TieBehavior.FORCE_ON:
        return (above | tie).astype(np.uint8)
    if tie_behavior is TieBehavior.FORCE_OFF:
        return above.astype(np.uint8)
    return np.where(tie, np.asarray(previous) != 0, above).astype(np.uint8)


class WeightedDynamics(object):
    """
    Thresholded weighted-sum dynamics.

    For node i, raw_i = bias_i + sum_j W[i, j] * x_j; the next value is 1 if
    raw_i exceeds threshold_multiplier * max(sum_j |W[i, j]|, 1), 0 if it
    falls below it, and given by the tie policy if it equals it. Nodes with
    no incoming edge and zero bias are input nodes and keep their value.

    **Constructor Parameters:**

        - nodes (list): Node list, see wiring_diagram.normalize_nodes.
        - edges (list): Edge list, see edges_to_matrix.
        - biases (dict[str:float], optional): Additive constant per node id
          (ids or labels). Default 0.
        - basal_activity (dict[str:float], optional): Further constant added
          on top of the bias of a node. Default 0.
        - threshold_multiplier (float, optional): Default 0.5.
        - tie_behavior (TieBehavior | str, optional): Default 'hold'.

    **Members:**

        - W (np.array[float]): Weight matrix, W[target, source].
        - bias (np.array[float]): Bias per node.
        - thresholds (np.array[float]): Threshold per node.
        - is_input (np.array[bool]): Nodes that keep their value.
        - tie_behavior (TieBehavior)
    """

    def __init__(self, nodes : list, edges : list, biases : Optional[Mapping] = None,
                 basal_activity : Optional[Mapping] = None,
                 threshold_multiplier : float = 0.5,
                 tie_behavior : Union[TieBehavior, str] = TieBehavior.HOLD):
        self.resolver = NodeResolver(nodes)
        self.nodes = self.resolver.nodes
        self.N = len(self.nodes)
        self.node_order = [node.id for node in self.nodes]
        self.codec = StateCodec(self.node_order)
        self.W = edges_to_matrix(self.resolver, edges)
        self.bias = np.zeros(self.N, dtype=float)
        for node_id, value in ({} if biases is None else biases).items():
            try:
                self.bias[self.resolver.resolve(node_id)] = float(value)
            except ParseError as e:
                raise ConfigurationError(f"bias for {node_id!r}: {e.reason}") from None
        for node_id, value in ({} if basal_activity is None else basal_activity).items():
            try:
                self.bias[self.resolver.resolve(node_id)] += float(value)
            except ParseError as e:
                raise ConfigurationError(f"basal activity for {node_id!r}: {e.reason}") from None
        self.threshold_multiplier = float(threshold_multiplier)
        self.tie_behavior = TieBehavior(tie_behavior)
        self.in_degrees = np.sum(np.abs(self.W), axis=1)
        self.thresholds = compute_threshold(self.in_degrees, self.threshold_multiplier)
        self.is_input = (np.count_nonzero(self.W, axis=1) == 0) & (self.bias == 0)

    def compute_raw(self, X : np.ndarray) -> np.ndarray:
        """Weighted input bias + W x for one state (N,) or many states (M, N)."""
        return np.asarray(X, dtype=float) @ self.W.T + self.bias

    def compute_next_vector(self, X : Union[list, np.ndarray]) -> np.ndarray:
        X = np.asarray(X)
        FX = apply_threshold(self.compute_raw(X), self.thresholds, X, self.tie_behavior)
        return np.where(self.is_input, X != 0, FX).astype(np.uint8)

    def compute_next_state(self, xdec : int) -> int:
        X = np.array(utils.dec2bin(xdec, self.N), dtype=np.uint8)
        return utils.bin2dec(self.compute_next_vector(X))

    def compute_transition_table(self) -> np.ndarray:
        """Successor (decimal) of every one of the 2^N states."""
        assert self.N <= MAX_NODES_TRANSITION_TABLE, "state space too large for a full transition table"
        states = utils.get_left_side_of_truth_table(self.N)
        next_states = self.compute_next_vector(states)
        powers_of_two = 2 ** np.arange(self.N, dtype=np.int64)[::-1]
        return next_states.astype(np.int64) @ powers_of_two

    def get_wiring_diagram(self) -> WiringDiagram:
        I = [np.nonzero(self.W[i])[0] for i in range(self.N)]
        weights = [self.W[i][I[i]] for i in range(self.N)]
        return WiringDiagram(self.nodes, I, weights)

    def get_edges(self) -> list:
        return matrix_to_edges(self.node_order, self.W)
