"""
Approximate Bayesian computation for a stochastic movement model.

The package simulates a correlated random walk, observes it through a noisy
and lossy sensor, and recovers the movement-length and observation-error
parameters with ABC rejection (and ABC-MCMC). A companion Bayesian linear
regression is fitted through a generic posterior-sampler interface.
"""

__version__ = "0.1.0"
