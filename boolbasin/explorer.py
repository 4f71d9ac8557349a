#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Tue Oct 13 11:47:26 2026

State-space exploration: synchronous trajectories from many initial states,
each followed until it revisits a state (a cycle has been found), reaches a
state already known to lead to an attractor, or exhausts the step cap.
"""

import logging
from dataclasses import dataclass, field

from typing import Optional, Iterable

import boolbasin.utils as utils
from boolbasin.dynamics import MAX_NODES_TRANSITION_TABLE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrajectoryOutcome:
    """
    Result of following one trajectory.

    **Members:**

        - initial_state (int): Starting state.
        - attractor_key (int | None): Smallest state of the attractor reached,
          None if the trajectory is unresolved.
        - cycle (tuple[int] | None): The cycle in transition order if it was
          discovered by this trajectory, else None.
        - steps (int): Number of transitions computed.
    """
    initial_state: int
    attractor_key: Optional[int]
    cycle: Optional[tuple]
    steps: int

    @property
    def resolved(self) -> bool:
        return self.attractor_key is not None


@dataclass
class ExplorationRun:
    """
    Everything one call of explore_trajectories produced.

    **Members:**

        - outcomes (list[TrajectoryOutcome]): One per processed initial state.
        - stg (dict[int:int] | None): Observed transitions, if recorded.
        - cancelled (bool): Whether the run stopped on a cancellation signal.
        - n_requested (int | None): Number of initial states passed in, if known.
    """
    outcomes: list = field(default_factory=list)
    stg: Optional[dict] = None
    cancelled: bool = False
    n_requested: Optional[int] = None

    @property
    def unresolved(self) -> list:
        return [outcome for outcome in self.outcomes if not outcome.resolved]


def choose_initial_states(N : int, state_cap : int, *, rng=None,
                          initial_states : Optional[Iterable] = None) -> tuple:
    """
    Select the initial states of an exploration.

    **Parameters:**

        - N (int): Number of nodes.
        - state_cap (int): Maximum number of initial states.
        - rng (None, optional): Argument for the random number generator,
          implemented in 'utils._coerce_rng'.
        - initial_states (list[int] | None, optional): Explicit states (in
          decimal form). Duplicates are dropped, order is kept, and at most
          state_cap are used.

    **Returns:**

        - tuple[Sequence[int], bool, list[str]]: The initial states (a range
          when the whole state space is enumerated), whether the selection
          covers less than the whole state space, and warnings.
    """
    total_state_space = 2**N
    warnings = []
    if initial_states is not None:
        unique = list(dict.fromkeys(int(x) for x in initial_states))
        if len(unique) > state_cap:
            warnings.append(f"{len(unique)} initial states were supplied but the state cap is {state_cap}; "
                            f"only the first {state_cap} are explored.")
            unique = unique[:state_cap]
        return unique, len(unique) < total_state_space, warnings
    if total_state_space <= state_cap:
        return range(total_state_space), False, warnings
    states = utils.sample_distinct_states(N, state_cap, rng=rng)
    warnings.append(f"State space (2^{N} = {total_state_space}) exceeds the state cap ({state_cap}); "
                    f"{state_cap} randomly sampled initial states were explored, so attractors and basin "
                    f"sizes cover a subset of the state space.")
    return states, True, warnings


def explore_trajectories(dynamics, initial_states : Iterable, step_cap : int, *,
                         USE_TRANSITION_TABLE : Optional[bool] = None,
                         RECORD_STG : bool = False, cancel=None,
                         cancel_check_interval : int = 1024) -> ExplorationRun:
    """
    Follow the synchronous trajectory of every initial state.

    Each trajectory keeps its own map from visited state to step index. When
    the successor of the current state is already in that map, the slice of
    the trajectory from that state on is a cycle and the trajectory stops.
    States on resolved trajectories are remembered together with the
    attractor they lead to, so later trajectories stop as soon as they reach
    one of them; this gives the same attribution as tracing each trajectory
    to its cycle.

    **Parameters:**

        - dynamics: Object providing N, compute_next_state(xdec) and
          compute_transition_table(), see dynamics.py.
        - initial_states (Iterable[int]): Initial states in decimal form.
        - step_cap (int): Maximum number of transitions per trajectory.
          Trajectories exhausting it are reported unresolved.
        - USE_TRANSITION_TABLE (bool | None, optional): Precompute the
          successor of every state in vectorized form. By default this is done
          when the initial states cover the whole state space and N is small.
        - RECORD_STG (bool, optional): Record every computed transition.
        - cancel (callable | threading.Event | None, optional): Checked
          between trajectories and every cancel_check_interval steps; when it
          signals, the run stops and returns what it has.
        - cancel_check_interval (int, optional): See cancel.

    **Returns:**

        - ExplorationRun
    """
    try:
        n_requested = len(initial_states)
    except TypeError:
        n_requested = None
    if USE_TRANSITION_TABLE is None:
        USE_TRANSITION_TABLE = (n_requested is not None and n_requested == 2**dynamics.N
                                and dynamics.N <= MAX_NODES_TRANSITION_TABLE)
    if USE_TRANSITION_TABLE:
        table = dynamics.compute_transition_table()
        get_next = lambda xdec: int(table[xdec])
    else:
        dictF = dict()
        def get_next(xdec):
            try:
                return dictF[xdec]
            except KeyError:
                fxdec = dynamics.compute_next_state(xdec)
                dictF[xdec] = fxdec
                return fxdec

    run = ExplorationRun(stg=dict() if RECORD_STG else None, n_requested=n_requested)
    attractor_of = dict()
    steps_since_check = 0

    for xdec in initial_states:
        if utils.is_cancelled(cancel):
            run.cancelled = True
            break
        xdec = int(xdec)
        try:
            run.outcomes.append(TrajectoryOutcome(xdec, attractor_of[xdec], None, 0))
            continue
        except KeyError:
            pass

        seen = {xdec: 0}
        queue = [xdec]
        outcome = None
        count = 0
        while count < step_cap:
            fxdec = get_next(xdec)
            count += 1
            if RECORD_STG:
                run.stg[xdec] = fxdec
            try:
                index = seen[fxdec]
                cycle = tuple(queue[index:])
                key = min(cycle)
                outcome = TrajectoryOutcome(queue[0], key, cycle, count)
                break
            except KeyError:
                pass
            try:
                key = attractor_of[fxdec]
                outcome = TrajectoryOutcome(queue[0], key, None, count)
                break
            except KeyError:
                pass
            seen[fxdec] = len(queue)
            queue.append(fxdec)
            xdec = fxdec
            steps_since_check += 1
            if steps_since_check >= cancel_check_interval:
                steps_since_check = 0
                if utils.is_cancelled(cancel):
                    run.cancelled = True
                    break
        if run.cancelled:
            break
        if outcome is None:
            run.outcomes.append(TrajectoryOutcome(queue[0], None, None, count))
            continue
        attractor_of.update(zip(queue, [outcome.attractor_key] * len(queue)))
        run.outcomes.append(outcome)

    logger.debug("explored %i trajectories (%i unresolved, cancelled=%s)",
                 len(run.outcomes), len(run.unresolved), run.cancelled)
    return run
