# %% [markdown]
# # Attractors and Basins of Regulatory Networks
#
# The long-term behavior of a regulatory network is described by its
# attractors: the fixed points and limit cycles its dynamics settles into.
# Each attractor has a basin, the set of initial states leading to it. In
# this tutorial we analyze the same kind of question in the three modes of
# boolbasin:
#
# - **deterministic**: exact Boolean update rules,
# - **weighted**: thresholded sums of signed edge weights,
# - **probabilistic**: the weighted dynamics with noise and degradation.
#
# ## What you will learn
# In this tutorial you will learn how to:
#
# - write update rules and run a deterministic analysis,
# - read attractors, basins and warnings from an AnalysisResult,
# - describe a network by weighted edges and choose a tie policy,
# - estimate steady-state activation probabilities,
# - simulate knock-outs and knock-ins.
#
# ## Setup

# %%
import boolbasin


# %% [markdown]
# ## Deterministic analysis
#
# A network is a list of nodes and one rule per node. Rules use the operators
# NOT, AND, NAND, XOR, NOR and OR. NOT binds tightest, OR loosest and the
# other four share one level, evaluated left to right. Symbolic
# forms such as `!`, `&&` and `||` work as well. A node without a rule keeps
# its value.
#
# Consider a toggle switch of two mutually inhibiting genes.

# %%
nodes = ['GATA1', 'PU1']
rules = ['GATA1 = NOT PU1',
         'PU1 = NOT GATA1']

result = boolbasin.perform_deterministic_analysis(nodes, rules)
print(result)

# %% [markdown]
# States are written as binary strings in node order: the first node is the
# leftmost bit. The toggle switch has two fixed points (one gene on, the
# other off) and, under synchronous updates, a cycle between 00 and 11.
# Attractors are sorted by basin size.

# %%
for attractor in result.attractors:
    print(attractor.type, [state.values for state in attractor.states],
          attractor.basin_size, attractor.basin_share)

# %% [markdown]
# The result can be exported as a DataFrame (one row per attractor state) or
# as a dictionary ready for JSON serialization.

# %%
result.to_dataframe()

# %%
result.to_dict()['attractors'][0]

# %% [markdown]
# ## Large networks: caps and warnings
#
# Deterministic analysis enumerates all 2^N initial states when this number
# does not exceed the state cap, and samples state_cap initial states
# otherwise. The result then carries a warning and the truncated flag.

# %%
N = 16
ring_nodes = [f'x{i}' for i in range(N)]
ring_rules = [f'x{i} = x{(i - 1) % N}' for i in range(N)]

result = boolbasin.perform_deterministic_analysis(ring_nodes, ring_rules, state_cap=2000, seed=0)
print(result.truncated, result.sampled_state_count, result.total_state_space)
print(result.warnings[0])

# %% [markdown]
# ## Weighted analysis
#
# In the weighted mode each node sums the weights of its active regulators
# (plus an optional bias) and turns on if the sum exceeds
# threshold_multiplier times its absolute in-degree. The tie policy decides
# what happens when the sum equals the threshold: 'hold' keeps the current
# value, 'force-on' and 'force-off' set it.

# %%
edges = [('GATA1', 'PU1', -1),
         ('PU1', 'GATA1', -1),
         ('GATA1', 'GATA1', 1),
         ('PU1', 'PU1', 1)]

for tie_behavior in ['hold', 'force-on', 'force-off']:
    result = boolbasin.perform_weighted_analysis(nodes, edges, tie_behavior=tie_behavior)
    print(tie_behavior, [[state.binary for state in a.states] for a in result.attractors])

# %% [markdown]
# ## Probabilistic analysis
#
# Biological noise blurs the attractor landscape. In the probabilistic mode
# each update is flipped with probability noise, and an active node decays
# with probability degradation. Instead of attractors, the analysis returns
# the steady-state probability of every node being active and the
# corresponding potential energy -ln(p).

# %%
result = boolbasin.perform_probabilistic_analysis(nodes, edges, noise=0.05, degradation=0.05,
                                                  initial_probabilities={'GATA1': 0.9, 'PU1': 0.1})
print(result.probabilities)
print(result.potential_energies)
print(result.converged, result.iterations)

# %% [markdown]
# ## Perturbations
#
# A knock-out replaces the rule of a node by the constant 0. A knock-in adds
# (or overrides) a node and can modify the rules of its targets.

# %%
ko_nodes, ko_rules = boolbasin.knock_out(nodes, rules, 'PU1')
print(boolbasin.perform_deterministic_analysis(ko_nodes, ko_rules))

ki_nodes, ki_rules = boolbasin.knock_in(nodes, rules, 'Drug', value=1,
                                        outward_regulations=[('PU1', 'AND', 'NOT Drug')])
print(boolbasin.perform_deterministic_analysis(ki_nodes, ki_rules))
