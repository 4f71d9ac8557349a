#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Wed Oct 14 16:31:09 2026

Entry points of the three analysis modes.

    - deterministic: exact Boolean rules, attractors by state-space exploration
    - weighted: thresholded weighted sums, attractors by the same exploration
    - probabilistic: noisy weighted dynamics, steady-state node marginals

All structural and configuration problems raise before any simulation.
Running into a cap, a cancellation or non-convergence is reported through
the warnings and the truncated flag of the returned AnalysisResult.
"""

import logging

from typing import Optional, Iterable

from boolbasin.attractors import AnalysisResult, AttractorAggregator, make_attractor
from boolbasin.config import AnalysisMode, make_config
from boolbasin.dynamics import BooleanDynamics, WeightedDynamics
from boolbasin.errors import ConfigurationError
from boolbasin.explorer import choose_initial_states, explore_trajectories
from boolbasin.expression import RuleSet
from boolbasin.probabilistic import ProbabilisticEngine, compute_potential_energies
from boolbasin.wiring_diagram import normalize_nodes

logger = logging.getLogger(__name__)

# number of unresolved initial states listed in the step-cap warning
MAX_LISTED_STATES = 5


def _warn(warnings : list, message : str) -> None:
    logger.warning(message)
    warnings.append(message)


def _empty_result(mode : AnalysisMode) -> AnalysisResult:
    warnings = []
    _warn(warnings, "No nodes supplied; analysis skipped.")
    kwargs = {}
    if mode is AnalysisMode.PROBABILISTIC:
        kwargs = dict(probabilities={}, potential_energies={}, iterations=0, converged=True)
    return AnalysisResult(mode=mode.value, node_order=(), node_labels={}, total_state_space=1,
                          warnings=tuple(warnings), **kwargs)


def _check_node_count(N : int, config, mode : AnalysisMode) -> None:
    if N > config.max_nodes:
        raise ConfigurationError(f"{mode.value} analysis supports up to {config.max_nodes} nodes, "
                                 f"the network has {N}")


def explore_attractors(dynamics, config, mode : AnalysisMode,
                       initial_states : Optional[Iterable] = None, cancel=None) -> AnalysisResult:
    """
    Run the state-space exploration of a dynamics object and aggregate its
    attractors.

    **Parameters:**

        - dynamics (BooleanDynamics | WeightedDynamics): Transition function.
        - config (DeterministicConfig | WeightedConfig): Caps and seed.
        - mode (AnalysisMode): Mode reported in the result.
        - initial_states (list | None, optional): Explicit initial states in
          any form accepted by StateCodec.from_any.
        - cancel (callable | threading.Event | None, optional): Cancellation
          signal, see explorer.explore_trajectories.

    **Returns:**

        - AnalysisResult
    """
    codec = dynamics.codec
    N = dynamics.N
    warnings = []
    if initial_states is not None:
        initial_states = [codec.from_any(x) for x in initial_states]
    states, partial, selection_warnings = choose_initial_states(N, config.state_cap, rng=config.seed,
                                                                initial_states=initial_states)
    for message in selection_warnings:
        _warn(warnings, message)

    run = explore_trajectories(dynamics, states, config.step_cap, RECORD_STG=config.record_stg,
                               cancel=cancel, cancel_check_interval=config.cancel_check_interval)
    aggregator = AttractorAggregator(codec)
    aggregator.add_run(run)

    if aggregator.unresolved_states > 0:
        listed = ', '.join(codec.to_binary_string(x) for x in aggregator.unresolved_initial_states[:MAX_LISTED_STATES])
        more = ', ...' if aggregator.unresolved_states > MAX_LISTED_STATES else ''
        _warn(warnings, f"Step cap ({config.step_cap}) reached before a state repeated for "
                        f"{aggregator.unresolved_states} initial state(s) ({listed}{more}); "
                        f"their attractors are unknown.")
    if run.cancelled:
        total = len(states)
        _warn(warnings, f"Analysis cancelled after {aggregator.n_processed} of {total} initial states; "
                        f"the result is partial.")

    truncated = partial or aggregator.unresolved_states > 0 or run.cancelled
    attractors = aggregator.get_attractors()
    logger.debug("%s analysis: %i attractors from %i initial states (%i unresolved)", mode.value,
                 len(attractors), aggregator.n_processed, aggregator.unresolved_states)
    return AnalysisResult(mode=mode.value,
                          node_order=tuple(codec.node_order),
                          node_labels={node.id: node.label for node in dynamics.nodes},
                          attractors=attractors,
                          explored_state_count=aggregator.explored_state_count,
                          sampled_state_count=aggregator.n_processed,
                          unresolved_states=aggregator.unresolved_states,
                          total_state_space=2**N,
                          warnings=tuple(warnings),
                          truncated=truncated,
                          cancelled=run.cancelled,
                          stg=run.stg,
                          wiring_diagram=dynamics.get_wiring_diagram())


def perform_deterministic_analysis(nodes : list, rules : Optional[list] = None, config=None, *,
                                   initial_states : Optional[Iterable] = None, cancel=None,
                                   **kwargs) -> AnalysisResult:
    """
    Attractors and basins of a Boolean network with synchronous updates.

    **Parameters:**

        - nodes (list): Node list, see wiring_diagram.normalize_nodes. The
          order fixes the bit position of each node.
        - rules (list, optional): Update rules, see expression.RuleSet. Nodes
          without a rule keep their value.
        - config (DeterministicConfig, optional): Caps, seed, record_stg.
        - initial_states (list, optional): Explore only these initial states.
        - cancel (callable | threading.Event | None, optional): Cancellation
          signal.
        - \\*\\*kwargs: Overrides of config fields, e.g. state_cap=1000.

    **Returns:**

        - AnalysisResult

    **Raises:**

        - ConfigurationError: invalid config or more than config.max_nodes
          nodes.
        - ParseError: a rule does not compile.

    **Examples:**

        >>> result = perform_deterministic_analysis(['a', 'b'], ['a = NOT b', 'b = NOT a'])
        >>> [attractor.type for attractor in result.attractors]
        ['cycle', 'fixed-point', 'fixed-point']
    """
    config = make_config(AnalysisMode.DETERMINISTIC, config, **kwargs)
    nodes = normalize_nodes(nodes)
    if len(nodes) == 0:
        return _empty_result(AnalysisMode.DETERMINISTIC)
    _check_node_count(len(nodes), config, AnalysisMode.DETERMINISTIC)
    dynamics = BooleanDynamics(RuleSet(nodes, rules))
    return explore_attractors(dynamics, config, AnalysisMode.DETERMINISTIC,
                              initial_states=initial_states, cancel=cancel)


def perform_weighted_analysis(nodes : list, edges : Optional[list] = None, config=None, *,
                              initial_states : Optional[Iterable] = None, cancel=None,
                              **kwargs) -> AnalysisResult:
    """
    Attractors and basins of a weighted threshold network with synchronous
    updates, see dynamics.WeightedDynamics for the update.

    **Parameters:**

        - nodes (list): Node list.
        - edges (list, optional): Edges as dicts {'source', 'target',
          'weight'} or tuples (source, target[, weight]).
        - config (WeightedConfig, optional): Caps, seed, threshold_multiplier,
          tie_behavior, biases.
        - initial_states (list, optional): Explore only these initial states.
        - cancel (callable | threading.Event | None, optional): Cancellation
          signal.
        - \\*\\*kwargs: Overrides of config fields.

    **Returns:**

        - AnalysisResult

    **Raises:**

        - ConfigurationError: invalid config, too many nodes, or an edge
          referring to an unknown node.
    """
    config = make_config(AnalysisMode.WEIGHTED, config, **kwargs)
    nodes = normalize_nodes(nodes)
    if len(nodes) == 0:
        return _empty_result(AnalysisMode.WEIGHTED)
    _check_node_count(len(nodes), config, AnalysisMode.WEIGHTED)
    dynamics = WeightedDynamics(nodes, edges, biases=config.biases,
                                threshold_multiplier=config.threshold_multiplier,
                                tie_behavior=config.tie_behavior)
    return explore_attractors(dynamics, config, AnalysisMode.WEIGHTED,
                              initial_states=initial_states, cancel=cancel)


def perform_probabilistic_analysis(nodes : list, edges : Optional[list] = None, config=None, *,
                                   initial_states : Optional[Iterable] = None, cancel=None,
                                   **kwargs) -> AnalysisResult:
    """
    Steady-state activation probabilities of the noisy weighted dynamics,
    see probabilistic.py.

    The attractor list of the result holds a single approximate fixed point:
    the marginals rounded at config.binarization_threshold, with a basin
    covering every starting point.

    **Parameters:**

        - nodes (list): Node list.
        - edges (list, optional): Weighted edges, as for the weighted mode.
        - config (ProbabilisticConfig, optional): Noise, degradation,
          iteration cap, tolerance, method, ...
        - initial_states (list, optional): Starting states instead of the
          initial probabilities of the config.
        - cancel (callable | threading.Event | None, optional): Cancellation
          signal.
        - \\*\\*kwargs: Overrides of config fields.

    **Returns:**

        - AnalysisResult with probabilities, potential_energies, iterations
          and converged set.
    """
    config = make_config(AnalysisMode.PROBABILISTIC, config, **kwargs)
    nodes = normalize_nodes(nodes)
    if len(nodes) == 0:
        return _empty_result(AnalysisMode.PROBABILISTIC)
    _check_node_count(len(nodes), config, AnalysisMode.PROBABILISTIC)
    dynamics = WeightedDynamics(nodes, edges, biases=config.biases,
                                basal_activity=config.basal_activity,
                                threshold_multiplier=config.threshold_multiplier,
                                tie_behavior=config.tie_behavior)
    engine = ProbabilisticEngine(dynamics, config)
    engine.get_initial_probabilities()  # rejects unknown nodes before iterating
    estimate = engine.run(initial_states=initial_states, cancel=cancel)

    warnings = []
    if estimate.cancelled:
        _warn(warnings, f"Probabilistic analysis cancelled after {estimate.iterations} iterations; "
                        f"the probabilities are the last estimate.")
    elif not estimate.converged:
        _warn(warnings, f"Probabilistic analysis reached the maximum iteration count ({config.max_iterations}) "
                        f"before converging. Consider increasing max_iterations or relaxing the tolerance.")

    node_order = tuple(dynamics.node_order)
    probabilities = dict(zip(node_order, map(float, estimate.probabilities)))
    potential_energies = dict(zip(node_order, map(float, compute_potential_energies(estimate.probabilities))))
    dominant_state = engine.get_dominant_state(estimate.probabilities)
    attractor = make_attractor((dominant_state,), estimate.n_starts, estimate.n_starts,
                               dynamics.codec, approximate=True)
    return AnalysisResult(mode=AnalysisMode.PROBABILISTIC.value,
                          node_order=node_order,
                          node_labels={node.id: node.label for node in dynamics.nodes},
                          attractors=(attractor,),
                          explored_state_count=estimate.n_starts,
                          sampled_state_count=estimate.n_starts,
                          unresolved_states=0,
                          total_state_space=2**dynamics.N,
                          warnings=tuple(warnings),
                          truncated=estimate.cancelled or not estimate.converged,
                          cancelled=estimate.cancelled,
                          probabilities=probabilities,
                          potential_energies=potential_energies,
                          iterations=estimate.iterations,
                          converged=estimate.converged,
                          wiring_diagram=dynamics.get_wiring_diagram())


def analyze(nodes : list, mode='deterministic', rules : Optional[list] = None,
            edges : Optional[list] = None, config=None, **kwargs) -> AnalysisResult:
    """
    Dispatch to the entry point of a mode.

    **Parameters:**

        - nodes (list): Node list.
        - mode (AnalysisMode | str, optional): 'deterministic' (default),
          'weighted' or 'probabilistic'.
        - rules (list, optional): Update rules (deterministic mode).
        - edges (list, optional): Weighted edges (weighted and probabilistic
          modes).
        - config (optional): Config object of the mode.
        - \\*\\*kwargs: initial_states, cancel, and overrides of config fields.

    **Returns:**

        - AnalysisResult

    **Raises:**

        - ConfigurationError: unknown mode, or rules/edges given for a mode
          that does not use them.
    """
    try:
        mode = AnalysisMode(mode)
    except ValueError:
        raise ConfigurationError(f"unknown analysis mode {mode!r}") from None
    if mode is AnalysisMode.DETERMINISTIC:
        if edges:
            raise ConfigurationError("the deterministic mode uses rules, not edges")
        return perform_deterministic_analysis(nodes, rules, config, **kwargs)
    if rules:
        raise ConfigurationError(f"the {mode.value} mode uses edges, not rules")
    if mode is AnalysisMode.WEIGHTED:
        return perform_weighted_analysis(nodes, edges, config, **kwargs)
    return perform_probabilistic_analysis(nodes, edges, config, **kwargs)
