#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Mon Oct 12 11:38:05 2026

Node lists and the regulatory wiring diagram of a network.
"""

import logging
from dataclasses import dataclass

import numpy as np
import networkx as nx

from typing import Union, Optional

from boolbasin.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Node:
    """
    A network node.

    **Members:**

        - id (str): Unique, stable identifier.
        - label (str): Display name; defaults to the id.
    """
    id: str
    label: str = ''

    def __post_init__(self):
        if not self.label:
            object.__setattr__(self, 'label', self.id)


def normalize_nodes(nodes : Union[list, tuple]) -> list:
    """
    Convert a caller-supplied node list into a list of Node objects.

    **Parameters:**

        - nodes (list): Each entry is a Node, a string (the id), a tuple
          (id, label), or a dict with key 'id' and optional key 'label'.

    **Returns:**

        - list[Node]: Nodes in the supplied order. The order fixes the bit
          position of every node in every state.

    **Raises:**

        - ConfigurationError: if an entry cannot be interpreted, an id is
          empty, or two nodes share an id.
    """
    if nodes is None:
        return []
    result = []
    seen = set()
    for entry in nodes:
        if isinstance(entry, Node):
            node = entry
        elif isinstance(entry, str):
            node = Node(entry.strip())
        elif isinstance(entry, dict):
            if 'id' not in entry:
                raise ConfigurationError(f"node entry {entry!r} has no 'id'")
            label = entry.get('label')
            node = Node(str(entry['id']).strip(), '' if label is None else str(label).strip())
        elif isinstance(entry, (tuple, list)) and len(entry) in (1, 2):
            label = entry[1] if len(entry) == 2 else ''
            node = Node(str(entry[0]).strip(), '' if label is None else str(label).strip())
        else:
            raise ConfigurationError(f"cannot interpret node entry {entry!r}")
        if node.id == '':
            raise ConfigurationError("node ids must be non-empty strings")
        if node.id in seen:
            raise ConfigurationError(f"duplicate node id {node.id!r}")
        seen.add(node.id)
        result.append(node)
    return result


class WiringDiagram(object):
    """
    A class representing the wiring diagram (regulatory graph) of a network.

    **Constructor Parameters:**

        - nodes (list[Node]): Ordered node list.

        - I (list[list[int]]): For each node, the indices of its regulators.
          An empty list marks a node without an update rule (an input node
          that keeps its value).

        - weights (list[list[float]] | None, optional): For each node, the
          weights of its regulations in the order of I.

    **Members:**

        - nodes (list[Node]): As passed by the constructor.
        - variables (np.array[str]): Node ids.
        - I (list[np.array[int]]): As passed by the constructor.
        - weights (list[np.array[float]] | None): As passed by the constructor.
        - N (int): Number of nodes.
        - indegrees (list[int]): The indegree of each node.
        - outdegrees (np.array[int]): The outdegree of each node.
    """

    def __init__(self, nodes : list, I : Union[list, np.ndarray],
                 weights : Optional[list] = None):
        assert len(nodes) == len(I), "len(nodes)==len(I) required"
        assert weights is None or len(weights) == len(I), "len(weights)==len(I) required"
        self.nodes = list(nodes)
        self.variables = np.array([node.id for node in self.nodes], dtype=object)
        self.I = [np.array(regulators, dtype=int) for regulators in I]
        self.weights = None if weights is None else [np.array(w, dtype=float) for w in weights]
        self.N = len(self.I)
        self.indegrees = list(map(len, self.I))
        self.outdegrees = self.get_outdegrees()

    def __len__(self):
        return self.N

    def __getitem__(self, index):
        return self.I[index]

    def __str__(self):
        return f"Wiring diagram of {self.N} nodes with indegrees {self.indegrees}"

    def get_outdegrees(self) -> np.ndarray:
        """
        Returns the outdegree of each node.
        """
        outdegrees = np.zeros(self.N, int)
        for regulators in self.I:
            for regulator in regulators:
                outdegrees[regulator] += 1
        return outdegrees

    def get_input_nodes(self, AS_DICT : bool = False) -> Union[dict, np.ndarray]:
        """
        Identify nodes without regulators. Such nodes keep their initial value
        along every trajectory.

        **Parameters:**

            - AS_DICT (bool, optional): If True, return a dictionary
              {index: is_input_node}, otherwise an array of indices.
        """
        is_input = [self.indegrees[i] == 0 for i in range(self.N)]
        if AS_DICT:
            return dict(zip(range(self.N), is_input))
        return np.where(is_input)[0]

    def get_self_loops(self) -> np.ndarray:
        """Indices of nodes that regulate themselves."""
        return np.array([i for i in range(self.N) if i in self.I[i]], dtype=int)

    def generate_networkx_graph(self) -> nx.DiGraph:
        """
        Generate a NetworkX directed graph of the wiring diagram.

        Nodes are keyed by node id and carry the attribute 'label'. Edges
        point from regulator to target and carry the attribute 'weight' if
        weights are known.

        **Returns:**

            - networkx.DiGraph: The wiring diagram as directed graph.
        """
        G = nx.DiGraph()
        for node in self.nodes:
            G.add_node(node.id, label=node.label)
        for target, regulators in enumerate(self.I):
            for k, regulator in enumerate(regulators):
                attributes = {}
                if self.weights is not None:
                    attributes['weight'] = float(self.weights[target][k])
                G.add_edge(self.variables[regulator], self.variables[target], **attributes)
        return G

    def get_strongly_connected_components(self) -> list:
        """
        Determine the strongly connected components of the wiring diagram.

        **Returns:**

            - list[set[str]]: A list of sets of node ids, largest first.
        """
        G = self.generate_networkx_graph()
        return sorted(nx.strongly_connected_components(G), key=lambda scc: (-len(scc), sorted(scc)))

    def get_feedback_modules(self) -> list:
        """
        Strongly connected components that contain a feedback loop, i.e. all
        components with more than one node plus self-regulating single nodes.

        **Returns:**

            - list[set[str]]: Sets of node ids, largest first.
        """
        self_loops = {self.variables[i] for i in self.get_self_loops()}
        return [scc for scc in self.get_strongly_connected_components()
                if len(scc) > 1 or not scc.isdisjoint(self_loops)]
