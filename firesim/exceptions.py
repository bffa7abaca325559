"""
Custom exceptions for FireSim.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across all FireSim modules. All exceptions inherit from FireSimError,
enabling catch-all handling when needed.

Exception Hierarchy
-------------------
FireSimError (base)
├── InvalidParameterError - Parameters rejected before simulating
└── ValidationError - Malformed data handed to an operation
    └── QueryStringError - Unparsable shareable query strings

Numeric degeneracies inside the sampler (a uniform draw of exactly 0
feeding a logarithm) are guarded internally and never raised.

Usage
-----
>>> from firesim.exceptions import InvalidParameterError
>>>
>>> raise InvalidParameterError("years must be in [1, 100], got 0")
>>>
>>> # Catch all FireSim exceptions
>>> try:
...     results = run_monte_carlo(params, base_seed=42)
... except FireSimError as e:
...     print(f"FireSim error: {e}")
"""


class FireSimError(Exception):
    """
    Base exception for all FireSim errors.

    Examples
    --------
    >>> try:
    ...     engine.run(seed=42)
    ... except FireSimError as e:
    ...     logger.error(f"Simulation failed: {e}")
    """
    pass


class InvalidParameterError(FireSimError):
    """
    Simulation parameters rejected before any path is simulated.

    Raised when:
    - years <= 0 (or above the supported horizon)
    - starting_assets or initial_contribution is negative
    - a rate parameter is non-finite or outside its sane bound
    - a percentile rank lies outside [0, 100]
    - a seed is missing or not an integer

    Values are never silently clamped; the only documented clamp is the
    zero floor on sampled inflation rates.

    Examples
    --------
    >>> raise InvalidParameterError(
    ...     "inflation_rate must be in [0.0, 0.5], got -0.01. "
    ...     "Deflationary targets are not modeled."
    ... )
    """
    pass


class ValidationError(FireSimError):
    """
    Data validation failures.

    Raised when inputs to an operation are structurally invalid:
    - an empty collection of path results
    - paths of different lengths passed to the percentile aggregator
    - an unknown view name

    Examples
    --------
    >>> raise ValidationError(
    ...     f"All paths must have the same number of periods, "
    ...     f"got lengths {sorted(lengths)}."
    ... )
    """
    pass


class QueryStringError(ValidationError):
    """
    Shareable query-string parsing failures.

    Raised when a query string carries a value that cannot be parsed:
    - a non-numeric parameter value
    - a seed that is not an exact integer

    Examples
    --------
    >>> raise QueryStringError("seed must be an integer, got '42.5'")
    """
    pass
