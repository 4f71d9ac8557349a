#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Mon Oct 12 10:40:19 2026

Exceptions raised by the analysis engine.

Structural problems (an unparsable rule, an unknown identifier, a network too
large for the selected mode, an out-of-range parameter) raise before any
simulation starts. Running out of a configured cap is not an error: the
partial result is returned with ``truncated=True`` and a warning.
"""

from typing import Optional


class BoolBasinError(Exception):
    """Base class of all errors raised by boolbasin."""


class ParseError(BoolBasinError, ValueError):
    """
    A rule expression could not be compiled.

    **Members:**

        - expression (str | None): The offending expression.
        - token (str | None): The token (or identifier) that caused the failure.
        - position (int | None): Character offset of the token in expression.
        - target (str | None): The node whose rule failed, if known.
    """

    def __init__(self, message : str, expression : Optional[str] = None,
                 token : Optional[str] = None, position : Optional[int] = None,
                 target : Optional[str] = None):
        self.expression = expression
        self.token = token
        self.position = position
        self.target = target
        self.reason = message
        super().__init__(self._format())

    def _format(self) -> str:
        message = self.reason
        if self.target is not None:
            message = f"Rule for '{self.target}': {message}"
        if self.expression is not None:
            message += f" (in expression '{self.expression}'"
            if self.position is not None:
                message += f" at position {self.position}"
            message += ")"
        return message

    def with_target(self, target : str) -> "ParseError":
        """Return a copy of this error annotated with the rule target."""
        return type(self)(self.reason, expression=self.expression, token=self.token,
                          position=self.position, target=target)


class ConfigurationError(BoolBasinError, ValueError):
    """
    Invalid analysis input: a node count above the ceiling of the selected
    mode, a numeric parameter outside its valid range, or malformed node and
    edge lists.
    """


class UnknownIdentifierError(ParseError):
    """A rule references a name that is neither a node id nor a node label."""
