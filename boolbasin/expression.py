#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Mon Oct 12 13:21:44 2026

Compilation of textual Boolean update rules.

A rule such as ``"A AND NOT (B OR c)"`` is tokenized against the node list of
the network, converted to reverse Polish notation with the shunting-yard
algorithm and evaluated with a stack, either on a single state or on many
states at once.

Operator precedence, highest first: NOT, then AND/NAND/XOR/NOR, then OR. All
binary operators are left associative, NOT is right associative.
"""

import logging
from collections import namedtuple

import numpy as np
import pandas as pd

from typing import Union, Optional

import boolbasin.utils as utils
from boolbasin.errors import ParseError, UnknownIdentifierError
from boolbasin.wiring_diagram import Node, WiringDiagram, normalize_nodes

logger = logging.getLogger(__name__)

OperatorDef = namedtuple('OperatorDef', ['precedence', 'right_associative', 'arity'])

OPERATORS = {
    'NOT': OperatorDef(4, True, 1),
    'AND': OperatorDef(3, False, 2),
    'NAND': OperatorDef(3, False, 2),
    'XOR': OperatorDef(3, False, 2),
    'NOR': OperatorDef(3, False, 2),
    'OR': OperatorDef(1, False, 2),
}

# vectorised implementations on boolean numpy arrays
_ARRAY_FUNCTIONS = {
    'NOT': np.logical_not,
    'AND': np.logical_and,
    'NAND': lambda a, b: np.logical_not(np.logical_and(a, b)),
    'XOR': np.logical_xor,
    'OR': np.logical_or,
    'NOR': lambda a, b: np.logical_not(np.logical_or(a, b)),
}

# scalar implementations on python ints (0/1)
_SCALAR_FUNCTIONS = {
    'NOT': lambda a: 1 - a,
    'AND': lambda a, b: a & b,
    'NAND': lambda a, b: 1 - (a & b),
    'XOR': lambda a, b: a ^ b,
    'OR': lambda a, b: a | b,
    'NOR': lambda a, b: 1 - (a | b),
}

_SYMBOLS = [
    ('&&', 'AND'), ('||', 'OR'),
    ('!', 'NOT'), ('~', 'NOT'), ('¬', 'NOT'),
    ('&', 'AND'), ('∧', 'AND'), ('*', 'AND'),
    ('|', 'OR'), ('∨', 'OR'), ('+', 'OR'),
    ('^', 'XOR'), ('⊕', 'XOR'),
]

_CONSTANTS = {'1': 1, 'TRUE': 1, '0': 0, 'FALSE': 0}
_WEAK_CONSTANTS = {'T': 1, 'F': 0}  # only when no node of that name exists

# characters that may appear inside a node name but also act as operators
_NAME_EXTENSION_CHARACTERS = set('-/+')

Token = namedtuple('Token', ['kind', 'value', 'position', 'text'])


def _is_name_character(char : str) -> bool:
    return char.isalnum() or char in '_.'


def normalize_identifier(name : str) -> str:
    """Normalized lookup key of a node id or label: stripped and casefolded."""
    return str(name).strip().casefold()


class NodeResolver(object):
    """
    Symbol table mapping node identifiers to bit positions.

    Identifiers are resolved case-insensitively against both node ids and
    node labels. A key is ambiguous if it refers to more than one node, for
    example because a label equals a different node's id; resolving an
    ambiguous key raises a ParseError.

    **Constructor Parameters:**

        - nodes (list): Node list, see wiring_diagram.normalize_nodes.

    **Members:**

        - nodes (list[Node]): The normalized node list.
        - index (dict[str:int]): Unambiguous normalized identifier -> node index.
        - ambiguous (dict[str:list[str]]): Ambiguous key -> ids of the nodes
          it could refer to.
    """

    def __init__(self, nodes : list):
        self.nodes = normalize_nodes(nodes)
        candidates = {}
        for i, node in enumerate(self.nodes):
            for name in (node.id, node.label):
                key = normalize_identifier(name)
                if key == '':
                    continue
                candidates.setdefault(key, set()).add(i)
        self.index = {}
        self.ambiguous = {}
        for key, indices in candidates.items():
            if len(indices) == 1:
                self.index[key] = next(iter(indices))
            else:
                self.ambiguous[key] = [self.nodes[i].id for i in sorted(indices)]
        if self.ambiguous:
            logger.debug("ambiguous node identifiers: %s", sorted(self.ambiguous))

    def __contains__(self, name : str) -> bool:
        key = normalize_identifier(name)
        return key in self.index or key in self.ambiguous

    def __len__(self):
        return len(self.nodes)

    def resolve(self, name : str, expression : Optional[str] = None,
                position : Optional[int] = None) -> int:
        """
        Return the index of the node referred to by name.

        **Raises:**

            - ParseError: if name is unknown or ambiguous.
        """
        key = normalize_identifier(name)
        try:
            return self.index[key]
        except KeyError:
            pass
        if key in self.ambiguous:
            raise ParseError(f"ambiguous identifier '{name}' may refer to nodes {self.ambiguous[key]}",
                             expression=expression, token=name, position=position)
        raise UnknownIdentifierError(f"unknown identifier '{name}'", expression=expression,
                                     token=name, position=position)


def tokenize(expression : str, resolver : NodeResolver) -> list:
    """
    Split a rule expression into tokens and resolve its identifiers.

    **Parameters:**

        - expression (str): Boolean expression.
        - resolver (NodeResolver): Symbol table of the network.

    **Returns:**

        - list[Token]: Tokens of kind 'identifier' (value: node index),
          'constant' (value: 0 or 1), 'operator' (value: operator name),
          'lparen' and 'rparen'.

    **Raises:**

        - ParseError: for an unexpected character or an unknown or
          ambiguous identifier.
    """
    tokens = []
    length = len(expression)
    position = 0
    while position < length:
        char = expression[position]
        if char.isspace():
            position += 1
            continue
        if char == '(':
            tokens.append(Token('lparen', '(', position, char))
            position += 1
            continue
        if char == ')':
            tokens.append(Token('rparen', ')', position, char))
            position += 1
            continue
        if _is_name_character(char):
            end = position + 1
            while end < length and _is_name_character(expression[end]):
                end += 1
            extended_end = end
            while extended_end < length and (_is_name_character(expression[extended_end])
                                             or expression[extended_end] in _NAME_EXTENSION_CHARACTERS):
                extended_end += 1
            # names such as IL-6, ERK1/2 or CD4+ win over the operator reading
            for candidate_end in range(extended_end, end, -1):
                if expression[position:candidate_end] in resolver:
                    end = candidate_end
                    break
            raw = expression[position:end]
            upper = raw.upper()
            if upper in OPERATORS:
                tokens.append(Token('operator', upper, position, raw))
            elif upper in _CONSTANTS:
                tokens.append(Token('constant', _CONSTANTS[upper], position, raw))
            elif upper in _WEAK_CONSTANTS and raw not in resolver:
                tokens.append(Token('constant', _WEAK_CONSTANTS[upper], position, raw))
            else:
                index = resolver.resolve(raw, expression=expression, position=position)
                tokens.append(Token('identifier', index, position, raw))
            position = end
            continue
        for symbol, name in _SYMBOLS:
            if expression.startswith(symbol, position):
                tokens.append(Token('operator', name, position, symbol))
                position += len(symbol)
                break
        else:
            raise ParseError(f"unexpected character '{char}'", expression=expression,
                             token=char, position=position)
    return tokens


def _check_syntax(tokens : list, expression : str) -> None:
    """
    Reject operand/operator sequences the shunting-yard algorithm would
    silently accept, such as 'A B', 'A AND' or 'NOT'.
    """
    if not tokens:
        raise ParseError("empty expression", expression=expression)
    expect_operand = True
    for token in tokens:
        if expect_operand:
            if token.kind in ('identifier', 'constant'):
                expect_operand = False
            elif token.kind == 'lparen' or (token.kind == 'operator' and OPERATORS[token.value].arity == 1):
                pass
            else:
                raise ParseError(f"expected an operand but found '{token.text}'", expression=expression,
                                 token=token.text, position=token.position)
        else:
            if token.kind == 'rparen' or (token.kind == 'operator' and OPERATORS[token.value].arity == 2):
                expect_operand = token.kind == 'operator'
            else:
                raise ParseError(f"missing operator before '{token.text}'", expression=expression,
                                 token=token.text, position=token.position)
    if expect_operand:
        last = tokens[-1]
        raise ParseError(f"expression ends with '{last.text}'", expression=expression,
                         token=last.text, position=last.position)


def to_rpn(tokens : list, expression : str = '') -> list:
    """
    Convert an infix token list into reverse Polish notation
    (shunting-yard algorithm).

    **Raises:**

        - ParseError: for unbalanced parentheses.
    """
    output = []
    stack = []
    for token in tokens:
        if token.kind in ('identifier', 'constant'):
            output.append(token)
        elif token.kind == 'operator':
            definition = OPERATORS[token.value]
            while stack and stack[-1].kind == 'operator':
                top = OPERATORS[stack[-1].value]
                if definition.arity == 1:
                    break  # a prefix operator never reduces what precedes it
                if top.precedence > definition.precedence or (
                        top.precedence == definition.precedence and not definition.right_associative):
                    output.append(stack.pop())
                else:
                    break
            stack.append(token)
        elif token.kind == 'lparen':
            stack.append(token)
        else:
            while stack and stack[-1].kind != 'lparen':
                output.append(stack.pop())
            if not stack:
                raise ParseError("unbalanced parenthesis: unexpected ')'", expression=expression,
                                 token=')', position=token.position)
            stack.pop()
    while stack:
        top = stack.pop()
        if top.kind == 'lparen':
            raise ParseError("unbalanced parenthesis: '(' is never closed", expression=expression,
                             token='(', position=top.position)
        output.append(top)
    return output


class CompiledRule(object):
    """
    A Boolean update rule compiled to reverse Polish notation.

    **Members:**

        - expression (str): The source expression.
        - rpn (tuple[Token]): Tokens in reverse Polish notation.
        - regulators (np.array[int]): Sorted indices of the nodes the rule
          reads.
        - variables (np.array[str]): Ids of the regulators.
        - name (str): Id of the target node ('' if unknown).
    """

    __slots__ = ['expression', 'rpn', 'regulators', 'variables', 'name']

    def __init__(self, expression : str, rpn : list, variables : list, name : str = ''):
        self.expression = expression
        self.rpn = tuple(rpn)
        self.regulators = np.array(sorted({token.value for token in self.rpn if token.kind == 'identifier'}), dtype=int)
        self.variables = np.array([variables[i] for i in self.regulators], dtype=object)
        self.name = name

    def __repr__(self):
        return f"{type(self).__name__}({self.expression!r})"

    def __len__(self):
        return len(self.regulators)

    def is_constant(self) -> bool:
        """True if the rule reads no node."""
        return len(self.regulators) == 0

    def evaluate(self, X : Union[list, np.ndarray]) -> int:
        """
        Evaluate the rule on one network state.

        **Parameters:**

            - X (list[int] | np.array[int]): Full state vector of the network
              (one entry per node, in node order).

        **Returns:**

            - int: 0 or 1.
        """
        stack = []
        for token in self.rpn:
            if token.kind == 'identifier':
                stack.append(1 if X[token.value] else 0)
            elif token.kind == 'constant':
                stack.append(token.value)
            elif OPERATORS[token.value].arity == 1:
                stack.append(_SCALAR_FUNCTIONS[token.value](stack.pop()))
            else:
                right = stack.pop()
                left = stack.pop()
                stack.append(_SCALAR_FUNCTIONS[token.value](left, right))
        return stack[0]

    def evaluate_many(self, X : np.ndarray) -> np.ndarray:
        """
        Evaluate the rule on many states at once.

        **Parameters:**

            - X (np.array[int]): Matrix of shape (M, N), one state per row.

        **Returns:**

            - np.array[uint8]: The M outputs.
        """
        X = np.asarray(X)
        stack = []
        for token in self.rpn:
            if token.kind == 'identifier':
                stack.append(X[:, token.value] != 0)
            elif token.kind == 'constant':
                stack.append(np.bool_(token.value))
            elif OPERATORS[token.value].arity == 1:
                stack.append(_ARRAY_FUNCTIONS[token.value](stack.pop()))
            else:
                right = stack.pop()
                left = stack.pop()
                stack.append(_ARRAY_FUNCTIONS[token.value](left, right))
        return np.broadcast_to(stack[0], (X.shape[0],)).astype(np.uint8)

    def get_truth_table(self) -> np.ndarray:
        """
        Outputs of the rule for all 2^n combinations of its n regulators, in
        the row order of utils.get_left_side_of_truth_table(n) with the
        regulators in increasing index order.
        """
        n = len(self.regulators)
        inputs = utils.get_left_side_of_truth_table(n)
        X = np.zeros((2**n, int(self.regulators.max()) + 1 if n > 0 else 0), dtype=np.uint8)
        if n > 0:
            X[:, self.regulators] = inputs
        return self.evaluate_many(X)

    def to_truth_table(self, RETURN : bool = True, filename : Optional[str] = None):
        """
        Returns or saves the truth table of the rule as a pandas DataFrame,
        one column per regulator followed by a column named after the target.

        **Parameters:**

            - RETURN (bool, optional): Whether to return the DataFrame.
            - filename (str, optional): If given, the table is also written to
              this file; the extension ('csv', 'xls' or 'xlsx') selects the
              format.
        """
        n = len(self.regulators)
        columns = list(self.variables) + [self.name if self.name != '' else 'f']
        truth_table = pd.DataFrame(np.c_[utils.get_left_side_of_truth_table(n), self.get_truth_table()],
                                   columns=columns)
        if filename is not None:
            ending = filename.split('.')[-1]
            assert ending in ['csv', 'xls', 'xlsx'], "filename must end in 'csv','xls', or 'xlsx'"
            if ending == 'csv':
                truth_table.to_csv(filename, index=False)
            else:
                truth_table.to_excel(filename, index=False)
        if RETURN:
            return truth_table


def compile_expression(expression : str, resolver : Union[NodeResolver, list],
                       name : str = '') -> CompiledRule:
    """
    Compile a Boolean expression over the nodes of a network.

    **Parameters:**

        - expression (str): Expression using node ids or labels, the operators
          NOT/AND/OR/XOR/NAND/NOR (or their symbols !, ~, &&, &, *, ||, |, +,
          ^), parentheses and the constants 0, 1, TRUE, FALSE.
        - resolver (NodeResolver | list): Symbol table, or a node list from
          which one is built.
        - name (str, optional): Id of the target node.

    **Returns:**

        - CompiledRule

    **Raises:**

        - ParseError: malformed expression, unknown or ambiguous identifier,
          or unbalanced parentheses.

    **Examples:**

        >>> rule = compile_expression('A AND NOT B', ['A', 'B'])
        >>> rule.get_truth_table()
        array([0, 0, 1, 0], dtype=uint8)
    """
    if not isinstance(resolver, NodeResolver):
        resolver = NodeResolver(resolver)
    if not isinstance(expression, str):
        raise ParseError(f"rule expression must be a string, got {type(expression).__name__}")
    tokens = tokenize(expression, resolver)
    _check_syntax(tokens, expression)
    rpn = to_rpn(tokens, expression)
    variables = [node.id for node in resolver.nodes]
    return CompiledRule(expression, rpn, variables, name=name)


def _split_rule(rule, index : int):
    """Return (target, expression) for the supported rule formats."""
    if isinstance(rule, str):
        if '=' not in rule:
            raise ParseError(f"rule #{index} '{rule}' has no '=' separating target and expression",
                             expression=rule)
        target, expression = rule.split('=', 1)
        return target.strip(), expression.strip()
    if isinstance(rule, dict):
        target = rule.get('target', rule.get('targetNodeId', rule.get('name')))
        expression = rule.get('expression', rule.get('action'))
        if target is None or expression is None:
            raise ParseError(f"rule #{index} {rule!r} needs a target and an expression")
        return str(target).strip(), expression
    if isinstance(rule, (tuple, list)) and len(rule) == 2:
        return str(rule[0]).strip(), rule[1]
    raise ParseError(f"cannot interpret rule #{index}: {rule!r}")


class RuleSet(object):
    """
    The compiled update rules of one network.

    Each rule is compiled once; compiled rules are cached by (target,
    expression) so a RuleSet can be re-derived (for example after a
    perturbation) without parsing unchanged rules again.

    **Constructor Parameters:**

        - nodes (list): Node list, see wiring_diagram.normalize_nodes.
        - rules (list, optional): Rules as 'target = expression' strings,
          (target, expression) tuples, or dicts with keys 'target' (or
          'targetNodeId') and 'expression'. Targets are resolved like
          identifiers. Nodes without a rule keep their value.

    **Members:**

        - nodes (list[Node]): Normalized node list.
        - resolver (NodeResolver): Symbol table.
        - F (list[CompiledRule | None]): Compiled rule per node, None for
          frozen nodes.
        - N (int): Number of nodes.

    **Raises:**

        - ParseError: if any rule fails to compile, names an unknown or
          ambiguous target, or a target has more than one rule. The error
          names the failing rule's target.
    """

    def __init__(self, nodes : list, rules : Optional[list] = None, _cache : Optional[dict] = None):
        self.resolver = NodeResolver(nodes)
        self.nodes = self.resolver.nodes
        self.N = len(self.nodes)
        self._cache = {} if _cache is None else _cache
        self.F = [None] * self.N
        for index, rule in enumerate([] if rules is None else rules):
            target, expression = _split_rule(rule, index)
            try:
                target_index = self.resolver.resolve(target)
            except ParseError as e:
                raise ParseError(f"rule target: {e.reason}", expression=expression,
                                 token=target, target=target) from None
            target_id = self.nodes[target_index].id
            if self.F[target_index] is not None:
                raise ParseError(f"node '{target_id}' has more than one rule", expression=expression,
                                 target=target_id)
            self.F[target_index] = self._compile(target_id, expression)
        logger.debug("compiled %i rules for %i nodes", sum(f is not None for f in self.F), self.N)

    def _compile(self, target_id : str, expression : str) -> CompiledRule:
        key = (target_id, expression)
        try:
            return self._cache[key]
        except KeyError:
            pass
        try:
            compiled = compile_expression(expression, self.resolver, name=target_id)
        except ParseError as e:
            raise e.with_target(target_id) from None
        self._cache[key] = compiled
        return compiled

    def __len__(self):
        return self.N

    def __getitem__(self, index):
        return self.F[index]

    def get_frozen_nodes(self) -> np.ndarray:
        """Indices of nodes without an update rule."""
        return np.array([i for i, f in enumerate(self.F) if f is None], dtype=int)

    def get_rules(self) -> list:
        """The rules as (target id, expression) tuples, in node order."""
        return [(node.id, f.expression) for node, f in zip(self.nodes, self.F) if f is not None]

    def get_wiring_diagram(self) -> WiringDiagram:
        """The regulatory graph implied by the rules."""
        I = [[] if f is None else f.regulators for f in self.F]
        return WiringDiagram(self.nodes, I)

    def update_single_node(self, index : int, X : Union[list, np.ndarray]) -> int:
        """
        Next value of one node given the full current state X. A node without
        a rule keeps its value.
        """
        f = self.F[index]
        if f is None:
            return 1 if X[index] else 0
        return f.evaluate(X)

    def update_network_synchronously(self, X : Union[list, np.ndarray]) -> np.ndarray:
        """
        Synchronous update: every node's next value is computed from the same
        current state X.
        """
        return np.array([self.update_single_node(i, X) for i in range(self.N)], dtype=np.uint8)

    def update_many(self, X : np.ndarray) -> np.ndarray:
        """Synchronous update of every row of the (M, N) state matrix X."""
        X = np.asarray(X, dtype=np.uint8)
        FX = X.copy()
        for i, f in enumerate(self.F):
            if f is not None:
                FX[:, i] = f.evaluate_many(X)
        return FX

    def with_rules(self, rules : list, nodes : Optional[list] = None) -> "RuleSet":
        """
        Build a new RuleSet sharing this one's compiled-rule cache (the cache
        is only shared when the node list is unchanged).
        """
        if nodes is None:
            return RuleSet(self.nodes, rules, _cache=self._cache)
        return RuleSet(nodes, rules)
