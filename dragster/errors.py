"""Exception types for dragster.

Only configuration problems are raised. Modeled failures (propulsion loss)
and numerically degenerate trials are recorded in trial results instead.
"""


class ConfigurationError(ValueError):
    """Invalid scenario, distribution, or integrator configuration.

    Also raised when the adaptive integrator cannot meet its tolerance within
    the evaluation budget, which aborts the Monte Carlo run.
    """
