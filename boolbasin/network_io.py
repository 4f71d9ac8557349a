#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Thu Oct 15 14:12:58 2026

Reading and writing networks.

    - rule text: one 'target = expression' per line (bnet files use ',' as
      separator), blank lines and '#' comments ignored
    - weighted CSV: columns source, target, weight (pandas)
    - SIF: 'source interaction target' lines as used by Cytoscape
"""

import io
import logging

import numpy as np
import pandas as pd

from typing import Optional

from boolbasin.dynamics import _edge_fields
from boolbasin.errors import ConfigurationError, ParseError, UnknownIdentifierError
from boolbasin.expression import NodeResolver, compile_expression, _split_rule
from boolbasin.wiring_diagram import Node, normalize_nodes

logger = logging.getLogger(__name__)

# expressions marking a node without update rule
INPUT_NODE_EXPRESSIONS = ('', 'undefined', 'null', 'none', 'input')

SIF_NEGATIVE_INTERACTIONS = {'inhibits', 'inhibition', 'represses', 'suppresses',
                             'downregulates', 'negative', 'blocks'}


def _strip_comment(line : str) -> str:
    return line.split('#', 1)[0].strip()


def parse_rules_text(text : str, separator : str = '=') -> tuple:
    """
    Parse a rule file.

    Targets become nodes in the order they appear. Identifiers that are read
    by some rule but have no rule themselves are appended as input nodes
    (nodes that keep their value), in the order they are first found.

    **Parameters:**

        - text (str): Content of the rule file.
        - separator (str, optional): Separator between target and expression,
          '=' by default, ',' for bnet files.

    **Returns:**

        - tuple[list[Node], list[tuple[str, str]]]: Nodes and rules as
          (target, expression) pairs.

    **Raises:**

        - ParseError: a line without separator, a duplicate target, or an
          expression that does not compile.

    **Examples:**

        >>> nodes, rules = parse_rules_text('a = b AND NOT c\\nb = a')
        >>> [node.id for node in nodes]
        ['a', 'b', 'c']
    """
    targets = []
    rules = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        line = _strip_comment(line)
        if line == '':
            continue
        if separator not in line:
            raise ParseError(f"line {line_number} has no '{separator}' separating target and expression",
                             expression=line)
        target, expression = (part.strip() for part in line.split(separator, 1))
        if target == '':
            raise ParseError(f"line {line_number} has no target", expression=line)
        if target.casefold() in (t.casefold() for t in targets):
            raise ParseError(f"node '{target}' has more than one rule", expression=expression, target=target)
        targets.append(target)
        if expression.casefold() not in INPUT_NODE_EXPRESSIONS:
            rules.append((target, expression))

    nodes = [Node(target) for target in targets]
    for target, expression in rules:
        while True:
            try:
                compile_expression(expression, nodes, name=target)
                break
            except UnknownIdentifierError as e:
                logger.debug("adding input node %r read by the rule of %r", e.token, target)
                nodes.append(Node(e.token))
            except ParseError as e:
                raise e.with_target(target) from None
    return nodes, rules


def read_rules_file(filename : str, separator : str = '=') -> tuple:
    """parse_rules_text on the content of a file."""
    with open(filename, encoding='utf-8') as f:
        return parse_rules_text(f.read(), separator=separator)


def rules_to_text(nodes : list, rules : Optional[list] = None, separator : str = ' = ') -> str:
    """
    Serialize a rule-based network, one line per node in node order. Nodes
    without a rule are written with the expression 'undefined' so that the
    node list survives a round trip.
    """
    resolver = NodeResolver(nodes)
    expressions = {}
    for index, rule in enumerate([] if rules is None else rules):
        target, expression = _split_rule(rule, index)
        expressions[resolver.resolve(target)] = expression
    lines = []
    for i, node in enumerate(resolver.nodes):
        lines.append(f"{node.id}{separator}{expressions.get(i, 'undefined')}")
    return '\n'.join(lines)


def read_weighted_csv(filepath_or_buffer) -> tuple:
    """
    Read a weighted network from CSV with the columns source, target and
    (optionally) weight; column names are case-insensitive. Rows without a
    weight get weight 1.

    **Parameters:**

        - filepath_or_buffer: Anything pandas.read_csv accepts. A string
          containing a newline is read as CSV content.

    **Returns:**

        - tuple[list[Node], list[dict]]: Nodes in order of first appearance,
          and edges {'source', 'target', 'weight'}.

    **Raises:**

        - ConfigurationError: missing columns or non-numeric weights.
    """
    if isinstance(filepath_or_buffer, str) and '\n' in filepath_or_buffer:
        filepath_or_buffer = io.StringIO(filepath_or_buffer)
    df = pd.read_csv(filepath_or_buffer, skipinitialspace=True, comment='#')
    df.columns = [str(column).strip().lower() for column in df.columns]
    missing = {'source', 'target'} - set(df.columns)
    if missing:
        raise ConfigurationError(f"weighted CSV needs the columns source and target, missing {sorted(missing)}")
    df = df.dropna(subset=['source', 'target']).reset_index(drop=True)
    df['source'] = df['source'].astype(str).str.strip()
    df['target'] = df['target'].astype(str).str.strip()
    if 'weight' not in df.columns:
        df['weight'] = 1.
    weights = pd.to_numeric(df['weight'], errors='coerce')
    bad = df['weight'].notna() & weights.isna()
    if bad.any():
        raise ConfigurationError(f"non-numeric weight in row(s) {list(np.nonzero(bad.values)[0])}")
    df['weight'] = weights.fillna(1.)

    nodes = [Node(node_id) for node_id in dict.fromkeys(pd.concat([df['source'], df['target']]))]
    edges = [{'source': row.source, 'target': row.target, 'weight': float(row.weight)}
             for row in df.itertuples(index=False)]
    return nodes, edges


def weighted_network_to_dataframe(nodes : list, edges : Optional[list]) -> pd.DataFrame:
    """Edges as a DataFrame with the columns source, target, weight (node ids)."""
    resolver = NodeResolver(nodes)
    rows = []
    for index, edge in enumerate([] if edges is None else edges):
        source, target, weight = _edge_fields(edge, index)
        rows.append([resolver.nodes[resolver.resolve(source)].id, resolver.nodes[resolver.resolve(target)].id,
                     float(weight)])
    return pd.DataFrame(rows, columns=['source', 'target', 'weight'])


def weighted_network_to_csv(nodes : list, edges : Optional[list], filename : Optional[str] = None) -> Optional[str]:
    """
    Write the edges as CSV (source,target,weight) to filename, or return the
    CSV text if no filename is given.
    """
    return weighted_network_to_dataframe(nodes, edges).to_csv(filename, index=False)


def parse_sif(text : str) -> tuple:
    """
    Parse a network in Simple Interaction Format.

    Each line is 'source interaction target [target ...]' (tab or space
    separated), 'source target', or a single isolated node. Inhibitory
    interactions ('inhibits', 'represses', ...) get weight -1, all others
    weight 1.

    **Returns:**

        - tuple[list[Node], list[dict]]: Nodes in order of first appearance
          and edges.
    """
    node_ids = []
    edges = []
    def add(node_id):
        if node_id not in node_ids:
            node_ids.append(node_id)
    for line in text.splitlines():
        line = line.strip()
        if line == '' or line.startswith('#') or line.startswith('//'):
            continue
        parts = line.split('\t') if '\t' in line else line.split()
        parts = [part.strip() for part in parts if part.strip() != '']
        if len(parts) == 1:
            add(parts[0])
        elif len(parts) == 2:
            add(parts[0])
            add(parts[1])
            edges.append({'source': parts[0], 'target': parts[1], 'weight': 1.})
        else:
            source, interaction = parts[0], parts[1].lower()
            weight = -1. if interaction in SIF_NEGATIVE_INTERACTIONS else 1.
            add(source)
            for target in parts[2:]:
                add(target)
                edges.append({'source': source, 'target': target, 'weight': weight})
    return [Node(node_id) for node_id in node_ids], edges


def to_sif(nodes : list, edges : Optional[list]) -> str:
    """
    Serialize a weighted network in Simple Interaction Format: positive
    weights become 'activates', negative ones 'inhibits'. Nodes without edges
    are written on a line of their own.
    """
    df = weighted_network_to_dataframe(nodes, edges)
    lines = []
    for row in df.itertuples(index=False):
        interaction = 'activates' if row.weight > 0 else 'inhibits' if row.weight < 0 else 'interacts'
        lines.append(f"{row.source}\t{interaction}\t{row.target}")
    connected = set(df['source']) | set(df['target'])
    for node in normalize_nodes(nodes):
        if node.id not in connected:
            lines.append(node.id)
    return '\n'.join(lines)
