#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Thu Oct 15 09:48:37 2026

Knock-out and knock-in interventions.

Every function returns a modified copy of the network (node list plus rules,
or node list plus edges and biases) that can be passed to the analysis entry
points; the inputs are left unchanged.
"""

import logging

import numpy as np

from typing import Union, Optional, Mapping

from boolbasin.dynamics import _edge_fields
from boolbasin.errors import ConfigurationError, ParseError
from boolbasin.expression import NodeResolver, _split_rule
from boolbasin.wiring_diagram import Node, normalize_nodes

logger = logging.getLogger(__name__)

# bias pinning a node without incoming edges to 1 (or, negated, to 0)
PINNING_BIAS = 1.


def _as_list(node_ids) -> list:
    if isinstance(node_ids, (str, Node)):
        return [node_ids]
    return list(node_ids)


def _resolve_all(resolver : NodeResolver, node_ids) -> list:
    indices = []
    for node_id in _as_list(node_ids):
        if isinstance(node_id, Node):
            node_id = node_id.id
        try:
            indices.append(resolver.resolve(node_id))
        except ParseError as e:
            raise ConfigurationError(f"cannot perturb {node_id!r}: {e.reason}") from None
    return indices


def _rules_by_index(resolver : NodeResolver, rules : Optional[list]) -> dict:
    """{node index: expression} of a rule list, in rule order."""
    result = {}
    for index, rule in enumerate([] if rules is None else rules):
        target, expression = _split_rule(rule, index)
        try:
            target_index = resolver.resolve(target)
        except ParseError as e:
            raise ParseError(f"rule target: {e.reason}", expression=expression, token=target, target=target) from None
        result[target_index] = expression
    return result


def _rules_to_list(nodes : list, rules : dict) -> list:
    return [(nodes[i].id, rules[i]) for i in range(len(nodes)) if i in rules]


def fix_nodes(nodes : list, rules : Optional[list], values : Mapping) -> tuple:
    """
    Replace the rules of some nodes by constants.

    **Parameters:**

        - nodes (list): Node list.
        - rules (list): Rule list, any format accepted by RuleSet.
        - values (dict[str:int]): Node id or label -> 0 or 1.

    **Returns:**

        - tuple[list[Node], list[tuple[str, str]]]: Nodes and rules as
          (target id, expression) pairs in node order.
    """
    resolver = NodeResolver(nodes)
    nodes = resolver.nodes
    rules_by_index = _rules_by_index(resolver, rules)
    for node_id, value in values.items():
        if value not in (0, 1):
            raise ConfigurationError(f"node {node_id!r} can only be fixed to 0 or 1, got {value!r}")
        index = _resolve_all(resolver, [node_id])[0]
        rules_by_index[index] = str(int(value))
    return nodes, _rules_to_list(nodes, rules_by_index)


def knock_out(nodes : list, rules : Optional[list], node_ids : Union[str, list]) -> tuple:
    """
    Knock out nodes: their rule becomes the constant 0 while they stay in the
    network, so downstream rules see them as permanently off.

    **Returns:**

        - tuple[list[Node], list[tuple[str, str]]]: See fix_nodes.
    """
    resolver = NodeResolver(nodes)
    indices = _resolve_all(resolver, node_ids)
    logger.debug("knocking out %s", [resolver.nodes[i].id for i in indices])
    return fix_nodes(resolver.nodes, rules, {resolver.nodes[i].id: 0 for i in indices})


def knock_in(nodes : list, rules : Optional[list], node_id : str, rule : Optional[str] = None,
             value : Optional[int] = None, label : Optional[str] = None,
             outward_regulations : Optional[list] = None) -> tuple:
    """
    Knock in a node, for example a drug or an overexpressed gene.

    **Parameters:**

        - nodes (list): Node list.
        - rules (list): Rule list.
        - node_id (str): Id (or label) of the node. It is added to the end of
          the node list if it does not exist yet.
        - rule (str | None, optional): Update rule of the node.
        - value (int | None, optional): Constant value of the node, used if
          rule is None. If both are None, an existing rule is kept and a new
          node is an input node.
        - label (str | None, optional): Label of a newly added node.
        - outward_regulations (list | None, optional): Triples (target,
          operator, addition); the rule of target becomes
          '(existing rule) operator (addition)', or just addition if target
          has no rule, e.g. ('Apoptosis', 'OR', 'Drug').

    **Returns:**

        - tuple[list[Node], list[tuple[str, str]]]: See fix_nodes.
    """
    nodes = normalize_nodes(nodes)
    resolver = NodeResolver(nodes)
    if node_id not in resolver:
        nodes = nodes + [Node(str(node_id).strip(), '' if label is None else label)]
        # the old rules are re-resolved against the extended node list
        resolver = NodeResolver(nodes)
    index = _resolve_all(resolver, [node_id])[0]
    nodes = resolver.nodes
    rules_by_index = _rules_by_index(resolver, rules)
    if rule is not None:
        rules_by_index[index] = rule
    elif value is not None:
        if value not in (0, 1):
            raise ConfigurationError(f"knock-in value must be 0 or 1, got {value!r}")
        rules_by_index[index] = str(int(value))
    for target, operator, addition in ([] if outward_regulations is None else outward_regulations):
        target_index = _resolve_all(resolver, [target])[0]
        existing = rules_by_index.get(target_index)
        if existing:
            rules_by_index[target_index] = f"({existing}) {operator} ({addition})"
        else:
            rules_by_index[target_index] = addition
    return nodes, _rules_to_list(nodes, rules_by_index)


def fix_nodes_weighted(nodes : list, edges : Optional[list], values : Mapping,
                       biases : Optional[Mapping] = None) -> tuple:
    """
    Pin nodes of a weighted network to constant values.

    The incoming edges of a pinned node are removed and its bias is set to
    +PINNING_BIAS (value 1) or -PINNING_BIAS (value 0), which keeps it at the
    value from the first update on. Outgoing edges are kept, so the
    thresholds of downstream nodes are unchanged.

    **Returns:**

        - tuple[list[Node], list[dict], dict[str:float]]: Nodes, edges and
          biases (keyed by node id).
    """
    resolver = NodeResolver(nodes)
    nodes = resolver.nodes
    pinned = {}
    for node_id, value in values.items():
        if value not in (0, 1):
            raise ConfigurationError(f"node {node_id!r} can only be fixed to 0 or 1, got {value!r}")
        pinned[_resolve_all(resolver, [node_id])[0]] = int(value)
    new_biases = {}
    for node_id, bias in ({} if biases is None else biases).items():
        new_biases[nodes[_resolve_all(resolver, [node_id])[0]].id] = float(bias)
    new_edges = []
    for index, edge in enumerate([] if edges is None else edges):
        source, target, weight = _edge_fields(edge, index)
        target_index = _resolve_all(resolver, [target])[0]
        if target_index in pinned:
            continue
        new_edges.append({'source': nodes[_resolve_all(resolver, [source])[0]].id,
                          'target': nodes[target_index].id, 'weight': weight})
    for index, value in pinned.items():
        new_biases[nodes[index].id] = PINNING_BIAS if value == 1 else -PINNING_BIAS
    return nodes, new_edges, new_biases


def knock_out_edges(nodes : list, edges : Optional[list], node_ids : Union[str, list],
                    biases : Optional[Mapping] = None) -> tuple:
    """
    Knock out nodes of a weighted network: they are pinned to 0, so their
    outgoing influence vanishes. See fix_nodes_weighted.
    """
    resolver = NodeResolver(nodes)
    indices = _resolve_all(resolver, node_ids)
    return fix_nodes_weighted(resolver.nodes, edges, {resolver.nodes[i].id: 0 for i in indices}, biases)


def knock_in_edges(nodes : list, edges : Optional[list], node_id : str, value : int = 1,
                   targets : Optional[Mapping] = None, label : Optional[str] = None,
                   biases : Optional[Mapping] = None) -> tuple:
    """
    Knock in a node of a weighted network: the node is added if needed,
    pinned to value, and connected to targets.

    **Parameters:**

        - targets (dict[str:float] | None, optional): Target node -> weight of
          a new edge from the knocked-in node (negative for inhibition).

    **Returns:**

        - tuple[list[Node], list[dict], dict[str:float]]: See
          fix_nodes_weighted.
    """
    nodes = normalize_nodes(nodes)
    if node_id not in NodeResolver(nodes):
        nodes = nodes + [Node(str(node_id).strip(), '' if label is None else label)]
    nodes, new_edges, new_biases = fix_nodes_weighted(nodes, edges, {node_id: value}, biases)
    resolver = NodeResolver(nodes)
    source = nodes[_resolve_all(resolver, [node_id])[0]].id
    for target, weight in ({} if targets is None else targets).items():
        if not np.isfinite(weight):
            raise ConfigurationError(f"weight of the knock-in edge to {target!r} must be finite")
        new_edges.append({'source': source, 'target': nodes[_resolve_all(resolver, [target])[0]].id,
                          'weight': float(weight)})
    return nodes, new_edges, new_biases
