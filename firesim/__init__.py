"""
FireSim — Monte Carlo FIRE Projection

Projects an investment balance over a multi-year horizon under randomized
annual returns and inflation, and summarizes many simulated paths as
percentile bands in nominal and real terms.

Modules
-------
- rng            : Seeded Mulberry32 uniform generator
- returns        : Constrained log-normal samplers (returns, inflation)
- simulation     : Single path, Monte Carlo runner and engine
- percentiles    : Nearest-rank bands and representative paths
- serialization  : Query strings, parameter and result files
- plotting       : Percentile and diagnostics charts
- cli            : Command-line interface

"""

from .exceptions import FireSimError, InvalidParameterError, QueryStringError, ValidationError
from .rng import SeededRandom
from .returns import ConstrainedSampler, randomized_inflation, randomized_returns
from .simulation import (
    MonteCarloResult,
    PathResult,
    SimulationEngine,
    SimulationParams,
    YearRecord,
    run_monte_carlo,
    simulate_path,
)
from .percentiles import compute_percentiles, representative_paths
from .serialization import from_query_string, to_query_string
from . import utils

__version__ = "0.1.0"
