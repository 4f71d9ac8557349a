#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Wed Oct 14 10:05:12 2026

Noisy iterative dynamics on a weighted network.

One step of the noisy dynamics maps a binary state to a random binary state:

    (a) every node computes its weighted threshold update (the candidate),
    (b) the candidate is flipped with probability noise,
    (c) an active node decays to 0 with probability degradation.

Instead of enumerating attractors, the engine tracks the marginal
probability of every node being on until it stops changing. Two methods are
available:

    - 'mean-field': the marginals are propagated exactly under the assumption
      that nodes are independent. The candidate probability of a node is
      computed from the exact distribution of its weighted input (all 2^k
      configurations of its k regulators) or, for large in-degree, from a
      normal approximation of it.
    - 'sampling': a seeded ensemble of trajectories is simulated and the
      marginal is the running mean of node activity over time and ensemble.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
from scipy.stats import norm

from typing import Optional, Iterable

from boolbasin.config import (ProbabilisticConfig, ProbabilisticMethod, TieBehavior,
                              TIE_TOLERANCE, EXACT_INDEGREE_LIMIT)
from boolbasin.dynamics import WeightedDynamics
from boolbasin.errors import ConfigurationError, ParseError
import boolbasin.utils as utils

logger = logging.getLogger(__name__)

# floor of the probabilities entering -ln(p)
MIN_PROBABILITY = 1e-9


def compute_potential_energies(probabilities : np.ndarray) -> np.ndarray:
    """Potential energy -ln(p) of each node, with p floored at MIN_PROBABILITY."""
    return -np.log(np.maximum(np.asarray(probabilities, dtype=float), MIN_PROBABILITY))


def apply_noise_and_degradation(q : np.ndarray, noise : float, degradation : float) -> np.ndarray:
    """
    Probability of being on after steps (b) and (c), given the probability q
    that the candidate is on.
    """
    q = np.asarray(q, dtype=float)
    return (1 - degradation) * ((1 - noise) * q + noise * (1 - q))


@dataclass
class ProbabilisticEstimate:
    """
    Outcome of ProbabilisticEngine.run.

    **Members:**

        - probabilities (np.array[float]): Marginal probability per node.
        - iterations (int): Number of steps performed.
        - converged (bool): Whether the change stayed below the tolerance for
          the confirmation window.
        - cancelled (bool): Whether the run was stopped by its cancel signal.
        - n_starts (int): Number of starting points (ensemble members in the
          sampling method, initial states or 1 in the mean-field method).
        - changes (list[float]): Max-norm change of the marginals per step.
    """
    probabilities: np.ndarray
    iterations: int
    converged: bool
    cancelled: bool
    n_starts: int
    changes: list


class ProbabilisticEngine(object):
    """
    Propagates node marginals of the noisy dynamics of a weighted network.

    **Constructor Parameters:**

        - dynamics (WeightedDynamics): The deterministic part of a step.
        - config (ProbabilisticConfig): Noise, degradation, method, caps.
    """

    def __init__(self, dynamics : WeightedDynamics, config : ProbabilisticConfig):
        self.dynamics = dynamics
        self.config = config
        self.N = dynamics.N
        self.regulators = [np.nonzero(dynamics.W[i])[0] for i in range(self.N)]
        self._exact_tables = [None] * self.N
        for i in range(self.N):
            if not dynamics.is_input[i] and len(self.regulators[i]) <= EXACT_INDEGREE_LIMIT:
                self._exact_tables[i] = self._build_exact_table(i)

    def _build_exact_table(self, i : int) -> tuple:
        """
        Outcome of the threshold update of node i for every configuration of
        its regulators. Entries are 1, 0, or nan for a tie under the hold
        policy that cannot be resolved from the configuration itself.
        """
        J = self.regulators[i]
        configurations = utils.get_left_side_of_truth_table(len(J))
        raw = configurations @ self.dynamics.W[i, J] + self.dynamics.bias[i]
        threshold = self.dynamics.thresholds[i]
        outcome = (raw > threshold + TIE_TOLERANCE).astype(float)
        tie = np.abs(raw - threshold) <= TIE_TOLERANCE
        tie_behavior = self.dynamics.tie_behavior
        if tie_behavior is TieBehavior.FORCE_ON:
            outcome[tie] = 1.
        elif tie_behavior is TieBehavior.FORCE_OFF:
            outcome[tie] = 0.
        elif i in J:
            self_position = int(np.nonzero(J == i)[0][0])
            outcome[tie] = configurations[tie, self_position]
        else:
            outcome[tie] = np.nan
        return configurations, outcome

    def compute_candidate_probabilities(self, p : np.ndarray) -> np.ndarray:
        """
        Probability that the threshold update of each node yields 1 when every
        node j is independently on with probability p[j].
        """
        p = np.asarray(p, dtype=float)
        q = np.empty(self.N, dtype=float)
        for i in range(self.N):
            if self.dynamics.is_input[i]:
                q[i] = p[i]
                continue
            J = self.regulators[i]
            if self._exact_tables[i] is not None:
                configurations, outcome = self._exact_tables[i]
                weights = np.prod(np.where(configurations, p[J], 1 - p[J]), axis=1)
                q[i] = weights @ np.where(np.isnan(outcome), p[i], outcome)
            else:
                w = self.dynamics.W[i, J]
                mean = self.dynamics.bias[i] + w @ p[J]
                sd = math.sqrt(float((w**2) @ (p[J] * (1 - p[J]))))
                threshold = self.dynamics.thresholds[i]
                if sd == 0:
                    q[i] = float(mean > threshold)
                else:
                    q[i] = norm.sf(threshold, loc=mean, scale=sd)
        return np.clip(q, 0., 1.)

    def mean_field_step(self, p : np.ndarray) -> np.ndarray:
        q = self.compute_candidate_probabilities(p)
        return apply_noise_and_degradation(q, self.config.noise, self.config.degradation)

    def sampling_step(self, X : np.ndarray, rng : np.random.Generator) -> np.ndarray:
        """One noisy step of every trajectory of the ensemble X (rows)."""
        FX = self.dynamics.compute_next_vector(X)
        flips = rng.random(FX.shape) < self.config.noise
        decays = rng.random(FX.shape) < self.config.degradation
        return np.where(decays, 0, FX ^ flips).astype(np.uint8)

    def get_initial_probabilities(self) -> np.ndarray:
        p0 = np.full(self.N, float(self.config.initial_probability))
        for node_id, value in dict(self.config.initial_probabilities).items():
            try:
                p0[self.dynamics.resolver.resolve(node_id)] = float(value)
            except ParseError as e:
                raise ConfigurationError(f"initial probability for {node_id!r}: {e.reason}") from None
        return p0

    def run(self, initial_states : Optional[Iterable] = None, cancel=None) -> ProbabilisticEstimate:
        """
        Iterate until convergence or the iteration cap.

        **Parameters:**

            - initial_states (list[int] | None, optional): Starting states (in
              decimal form). The mean-field method starts from their average,
              the sampling method distributes them over the ensemble. By
              default the initial probabilities of the config are used.
            - cancel (callable | threading.Event | None, optional): Checked
              every config.cancel_check_interval steps.

        **Returns:**

            - ProbabilisticEstimate
        """
        config = self.config
        codec = self.dynamics.codec
        if initial_states is not None:
            initial_states = [codec.from_any(x) for x in initial_states]
            if len(initial_states) == 0:
                initial_states = None

        if config.method is ProbabilisticMethod.SAMPLING:
            rng = utils._coerce_rng(config.seed)
            if initial_states is None:
                n_starts = config.n_samples
                X = (rng.random((n_starts, self.N)) < self.get_initial_probabilities()).astype(np.uint8)
            else:
                # every given state starts at least one trajectory
                n_starts = max(config.n_samples, len(initial_states))
                X = codec.states_to_matrix(initial_states)[np.arange(n_starts) % len(initial_states)]
            cumulative = np.zeros(self.N, dtype=float)
            p = X.mean(axis=0)
        else:
            n_starts = 1 if initial_states is None else len(initial_states)
            if initial_states is None:
                p = self.get_initial_probabilities()
            else:
                p = codec.states_to_matrix(initial_states).mean(axis=0)

        changes = []
        below_tolerance = 0
        converged = False
        cancelled = False
        iterations = 0
        while iterations < config.max_iterations:
            if iterations % config.cancel_check_interval == 0 and utils.is_cancelled(cancel):
                cancelled = True
                break
            if config.method is ProbabilisticMethod.SAMPLING:
                X = self.sampling_step(X, rng)
                cumulative += X.mean(axis=0)
                p_next = cumulative / (iterations + 1)
            else:
                p_next = self.mean_field_step(p)
            iterations += 1
            change = utils.max_norm(p_next, p)
            changes.append(change)
            p = p_next
            if change < config.tolerance:
                below_tolerance += 1
                if below_tolerance >= config.confirmation_window:
                    converged = True
                    break
            else:
                below_tolerance = 0

        logger.debug("%s estimate after %i iterations (converged=%s, cancelled=%s)",
                     config.method.value, iterations, converged, cancelled)
        return ProbabilisticEstimate(probabilities=np.clip(np.asarray(p, dtype=float), 0., 1.),
                                     iterations=iterations, converged=converged, cancelled=cancelled,
                                     n_starts=n_starts, changes=changes)

    def get_dominant_state(self, probabilities : np.ndarray) -> int:
        """Marginals rounded at the binarization threshold, as a state."""
        binary = (np.asarray(probabilities) >= self.config.binarization_threshold).astype(np.uint8)
        return self.dynamics.codec.from_vector(binary)
