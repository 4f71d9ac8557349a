#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Tue Oct 13 15:20:44 2026

Attractor aggregation, basin accounting and the analysis result.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field

import pandas as pd
import networkx as nx

from typing import Optional

from boolbasin.state_codec import StateCodec
from boolbasin.wiring_diagram import WiringDiagram

logger = logging.getLogger(__name__)


def canonical_cycle(cycle : tuple) -> tuple:
    """
    Rotate a cycle (states in transition order) to start at its smallest
    state. The rotation preserves the transition order.
    """
    cycle = tuple(int(x) for x in cycle)
    start = cycle.index(min(cycle))
    return cycle[start:] + cycle[:start]


@dataclass(frozen=True)
class Attractor:
    """
    A fixed point or limit cycle with its basin.

    **Members:**

        - states (tuple[StateSnapshot]): The attractor states in transition
          order, starting at the smallest encoded state.
        - period (int): Number of states; 1 for a fixed point.
        - type (str): 'fixed-point' or 'cycle'.
        - basin_size (int): Number of explored initial states reaching it.
        - basin_share (float): basin_size divided by the number of resolved
          initial states.
        - approximate (bool): True for the pseudo-attractor of the
          probabilistic mode.
        - encoded_states (tuple[int]): states in decimal form.
    """
    states: tuple
    period: int
    type: str
    basin_size: int
    basin_share: float
    approximate: bool = False
    encoded_states: tuple = ()

    def __post_init__(self):
        assert self.period == len(self.states) >= 1, "period must equal the number of attractor states"
        assert (self.period == 1) == (self.type == 'fixed-point'), "period 1 if and only if type is 'fixed-point'"

    def __len__(self):
        return self.period

    @property
    def key(self) -> Optional[int]:
        """Smallest encoded state; identifies the attractor."""
        return self.encoded_states[0] if self.encoded_states else None

    @property
    def is_fixed_point(self) -> bool:
        return self.period == 1

    def to_dict(self) -> dict:
        return {'type': self.type,
                'period': self.period,
                'states': [state.to_dict() for state in self.states],
                'basinSize': self.basin_size,
                'basinShare': self.basin_share,
                'approximate': self.approximate}


def make_attractor(cycle : tuple, basin_size : int, explored_state_count : int,
                   codec : StateCodec, approximate : bool = False) -> Attractor:
    """Build an Attractor from a canonical cycle of encoded states."""
    period = len(cycle)
    return Attractor(states=tuple(codec.snapshot(x) for x in cycle),
                     period=period,
                     type='fixed-point' if period == 1 else 'cycle',
                     basin_size=int(basin_size),
                     basin_share=basin_size / explored_state_count if explored_state_count > 0 else 0.,
                     approximate=approximate,
                     encoded_states=tuple(cycle))


class AttractorAggregator(object):
    """
    Merges trajectory outcomes into attractors with basin counts.

    Outcomes from several explorer runs (for example over disjoint chunks of
    initial states) can be added one after another; each resolved trajectory
    increments the basin of exactly one attractor.

    **Constructor Parameters:**

        - codec (StateCodec): Codec used to report the attractor states.
    """

    def __init__(self, codec : StateCodec):
        self.codec = codec
        self.cycles = dict()
        self.basin_sizes = Counter()
        self.n_processed = 0
        self.unresolved_initial_states = []

    def add_outcome(self, outcome) -> None:
        self.n_processed += 1
        if not outcome.resolved:
            self.unresolved_initial_states.append(outcome.initial_state)
            return
        if outcome.cycle is not None and outcome.attractor_key not in self.cycles:
            self.cycles[outcome.attractor_key] = canonical_cycle(outcome.cycle)
        assert outcome.attractor_key in self.cycles, "outcome refers to an attractor whose cycle is unknown"
        self.basin_sizes[outcome.attractor_key] += 1

    def add_run(self, run) -> None:
        for outcome in run.outcomes:
            self.add_outcome(outcome)

    @property
    def explored_state_count(self) -> int:
        return sum(self.basin_sizes.values())

    @property
    def unresolved_states(self) -> int:
        return len(self.unresolved_initial_states)

    def get_attractors(self) -> tuple:
        """
        **Returns:**

            - tuple[Attractor]: Sorted by basin size (descending), then by
              smallest encoded state.
        """
        explored_state_count = self.explored_state_count
        keys = sorted(self.basin_sizes, key=lambda key: (-self.basin_sizes[key], key))
        return tuple(make_attractor(self.cycles[key], self.basin_sizes[key], explored_state_count, self.codec)
                     for key in keys)


@dataclass(frozen=True)
class AnalysisResult:
    """
    Outcome of one analysis.

    **Members:**

        - mode (str): 'deterministic', 'weighted' or 'probabilistic'.
        - node_order (tuple[str]): Node ids in bit order. Every state, column
          and vector of the result uses this order.
        - node_labels (dict[str:str]): Node id -> label.
        - attractors (tuple[Attractor]): Sorted by basin size, then key.
        - explored_state_count (int): Number of initial states whose
          trajectory reached an attractor.
        - sampled_state_count (int): Number of initial states processed.
        - unresolved_states (int): Initial states whose trajectory hit the
          step cap.
        - total_state_space (int): 2^N, exact.
        - warnings (tuple[str]): Human-readable warnings.
        - truncated (bool): True if the result does not cover the complete
          state space or did not run to completion.
        - cancelled (bool): True if the run was stopped by its cancel signal.
        - probabilities (dict[str:float] | None): Probabilistic mode only.
        - potential_energies (dict[str:float] | None): Probabilistic mode only.
        - iterations (int | None): Probabilistic mode only.
        - converged (bool | None): Probabilistic mode only.
        - stg (dict[int:int] | None): Observed transitions, if recorded.
        - wiring_diagram (WiringDiagram | None): Regulatory graph of the
          analyzed network.
    """
    mode: str
    node_order: tuple
    node_labels: dict
    attractors: tuple = ()
    explored_state_count: int = 0
    sampled_state_count: int = 0
    unresolved_states: int = 0
    total_state_space: int = 1
    warnings: tuple = ()
    truncated: bool = False
    cancelled: bool = False
    probabilities: Optional[dict] = None
    potential_energies: Optional[dict] = None
    iterations: Optional[int] = None
    converged: Optional[bool] = None
    stg: Optional[dict] = field(default=None, repr=False, compare=False)
    wiring_diagram: Optional[WiringDiagram] = field(default=None, repr=False, compare=False)

    @property
    def N(self) -> int:
        return len(self.node_order)

    @property
    def n_attractors(self) -> int:
        return len(self.attractors)

    def get_attractor(self, index : int) -> Attractor:
        return self.attractors[index]

    def get_fixed_points(self) -> list:
        return [attractor for attractor in self.attractors if attractor.is_fixed_point]

    def get_cycles(self) -> list:
        return [attractor for attractor in self.attractors if not attractor.is_fixed_point]

    def to_dict(self) -> dict:
        """
        JSON-friendly representation with camelCase keys. The probabilistic
        entries are only present in the probabilistic mode.
        """
        result = {'mode': self.mode,
                  'nodeOrder': list(self.node_order),
                  'nodeLabels': dict(self.node_labels),
                  'attractors': [dict(id=i, **attractor.to_dict()) for i, attractor in enumerate(self.attractors)],
                  'exploredStateCount': self.explored_state_count,
                  'sampledStateCount': self.sampled_state_count,
                  'unresolvedStates': self.unresolved_states,
                  'totalStateSpace': self.total_state_space,
                  'warnings': list(self.warnings),
                  'truncated': self.truncated,
                  'cancelled': self.cancelled}
        if self.probabilities is not None:
            result['probabilities'] = dict(self.probabilities)
            result['potentialEnergies'] = dict(self.potential_energies)
            result['iterations'] = self.iterations
            result['converged'] = self.converged
        return result

    def to_dataframe(self) -> pd.DataFrame:
        """
        One row per (attractor, state) pair: the attractor's index, type,
        period, basin size and share, the position of the state in the cycle,
        its binary string, and one column per node in node_order.
        """
        columns = ['attractor', 'type', 'period', 'basin_size', 'basin_share', 'position', 'binary'] + list(self.node_order)
        rows = []
        for i, attractor in enumerate(self.attractors):
            for position, state in enumerate(attractor.states):
                rows.append([i, attractor.type, attractor.period, attractor.basin_size, attractor.basin_share,
                             position, state.binary] + [state.values[node_id] for node_id in self.node_order])
        return pd.DataFrame(rows, columns=columns)

    def to_csv(self, filename : Optional[str] = None) -> Optional[str]:
        """
        Write to_dataframe() as CSV to filename, or return the CSV text if no
        filename is given.
        """
        return self.to_dataframe().to_csv(filename, index=False)

    def get_state_transition_graph(self) -> nx.DiGraph:
        """
        The recorded state transition graph (see the record_stg option).

        Nodes are states in decimal form with attributes 'binary' and
        'attractor' (index of the attractor the state flows into, None if
        unknown); attractor states additionally have 'in_attractor' True.
        """
        assert self.stg is not None, "no state transition graph was recorded; rerun with record_stg=True"
        G = nx.DiGraph()
        codec = StateCodec(self.node_order)
        for xdec, fxdec in self.stg.items():
            G.add_edge(xdec, fxdec)
        for xdec in G.nodes:
            G.nodes[xdec]['binary'] = codec.to_binary_string(xdec)
            G.nodes[xdec]['attractor'] = None
            G.nodes[xdec]['in_attractor'] = False
        for i, attractor in enumerate(self.attractors):
            if attractor.key is None or attractor.key not in G:
                continue
            for xdec in nx.ancestors(G, attractor.key) | {attractor.key}:
                G.nodes[xdec]['attractor'] = i
            for xdec in attractor.encoded_states:
                G.nodes[xdec]['in_attractor'] = True
        return G

    def summary(self) -> str:
        lines = [f"{self.mode} analysis of {self.N} nodes: {self.n_attractors} attractor(s), "
                 f"{self.explored_state_count} of {self.sampled_state_count} sampled initial states resolved "
                 f"(state space {self.total_state_space})"]
        for i, attractor in enumerate(self.attractors):
            states = ' -> '.join(state.binary for state in attractor.states)
            lines.append(f"  #{i} {attractor.type} (period {attractor.period}{', approximate' if attractor.approximate else ''}): "
                         f"{states} | basin {attractor.basin_size} ({attractor.basin_share:.2%})")
        if self.probabilities is not None:
            lines.append("  probabilities: " + ', '.join(f"{node_id}={p:.3f}" for node_id, p in self.probabilities.items()))
            lines.append(f"  iterations: {self.iterations}, converged: {self.converged}")
        if self.wiring_diagram is not None:
            modules = self.wiring_diagram.get_feedback_modules()
            lines.append("  feedback modules: " + ('; '.join(', '.join(sorted(scc)) for scc in modules) or 'none'))
        if self.truncated:
            lines.append("  (truncated)")
        for warning in self.warnings:
            lines.append(f"  warning: {warning}")
        return '\n'.join(lines)

    def __str__(self):
        return self.summary()
