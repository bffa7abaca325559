"""
Configuration management module for FireSim.

Purpose
-------
Centralized configuration using Pydantic models for type-safe parameter
management, validation, and serialization. Parameter files, shareable query
strings and the CLI all go through these models before anything is
simulated.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and validates ranges
- Immutable: Frozen models prevent accidental mutation
- Serializable: Easy conversion to/from JSON for parameter files
- Environment-aware: Supports .env files for application settings
- Defaults: The canonical 30-year scenario is the default for every field

Example
-------
>>> from firesim.config import SimulationParamsConfig, SimulationConfig
>>> params = SimulationParamsConfig(annual_return=0.06).to_params()
>>> sim_config = SimulationConfig(n_paths=500, seed=42)
>>>
>>> # Serialize to dict/JSON
>>> config_dict = sim_config.model_dump()
>>> json_str = sim_config.model_dump_json()
>>>
>>> # Load from dict/JSON
>>> loaded = SimulationConfig.model_validate(config_dict)
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    ANNUAL_RETURN_BOUNDS,
    CONTRIBUTION_GROWTH_BOUNDS,
    DEFAULT_ANNUAL_RETURN,
    DEFAULT_CONTRIBUTION_GROWTH_RATE,
    DEFAULT_INFLATION_RATE,
    DEFAULT_INFLATION_VOLATILITY,
    DEFAULT_INITIAL_CONTRIBUTION,
    DEFAULT_N_PATHS,
    DEFAULT_PERCENTILES,
    DEFAULT_RETURN_VOLATILITY,
    DEFAULT_STARTING_ASSETS,
    DEFAULT_VIEW,
    DEFAULT_YEARS,
    INFLATION_RATE_BOUNDS,
    MAX_N_PATHS,
    MAX_YEARS,
)

if TYPE_CHECKING:
    from .simulation import SimulationParams

__all__ = [
    "SimulationParamsConfig",
    "SimulationConfig",
    "AppSettings",
]


# ---------------------------------------------------------------------------
# Scenario Parameters
# ---------------------------------------------------------------------------

class SimulationParamsConfig(BaseModel):
    """
    Validated schema for scenario parameters.

    Mirrors SimulationParams with the same bounds, plus defaults for every
    field so partial inputs (a query string with some keys missing, a short
    parameter file) fill in the canonical scenario.

    Attributes
    ----------
    starting_assets : float
        Balance before the first year.
    annual_return : float
        Target geometric annual return.
    initial_contribution : float
        First-year contribution.
    contribution_growth_rate : float
        Yearly contribution growth.
    inflation_rate : float
        Target compound inflation.
    years : int
        Projection horizon.

    Examples
    --------
    >>> config = SimulationParamsConfig(starting_assets=250_000, years=25)
    >>> config.to_params().years
    25
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    starting_assets: float = Field(
        default=DEFAULT_STARTING_ASSETS,
        ge=0,
        allow_inf_nan=False,
        description="Balance before the first year"
    )
    annual_return: float = Field(
        default=DEFAULT_ANNUAL_RETURN,
        ge=ANNUAL_RETURN_BOUNDS[0],
        le=ANNUAL_RETURN_BOUNDS[1],
        description="Target geometric annual return (e.g., 0.07 for 7%)"
    )
    initial_contribution: float = Field(
        default=DEFAULT_INITIAL_CONTRIBUTION,
        ge=0,
        allow_inf_nan=False,
        description="Contribution made at the start of year 1"
    )
    contribution_growth_rate: float = Field(
        default=DEFAULT_CONTRIBUTION_GROWTH_RATE,
        ge=CONTRIBUTION_GROWTH_BOUNDS[0],
        le=CONTRIBUTION_GROWTH_BOUNDS[1],
        description="Yearly contribution growth (e.g., 0.05 for 5%)"
    )
    inflation_rate: float = Field(
        default=DEFAULT_INFLATION_RATE,
        ge=INFLATION_RATE_BOUNDS[0],
        le=INFLATION_RATE_BOUNDS[1],
        description="Target compound inflation rate"
    )
    years: int = Field(
        default=DEFAULT_YEARS,
        ge=1,
        le=MAX_YEARS,
        description="Projection horizon in years"
    )

    def to_params(self) -> SimulationParams:
        """Build the immutable domain object used by the simulator."""
        from .simulation import SimulationParams

        return SimulationParams(**self.model_dump())


# ---------------------------------------------------------------------------
# Simulation Configuration
# ---------------------------------------------------------------------------

class SimulationConfig(BaseModel):
    """
    Configuration for Monte Carlo runs.

    Attributes
    ----------
    n_paths : int
        Number of Monte Carlo paths (1-10,000).
    seed : int, optional
        Base seed. The engine refuses to run without one; callers that want
        a fresh run must generate the seed themselves.
    return_volatility : float
        Log-space standard deviation of yearly returns.
    inflation_volatility : float
        Log-space standard deviation of yearly inflation.
    percentiles : tuple of float
        Ranks aggregated into bands.
    max_workers : int, optional
        Process pool size; None or 1 runs sequentially.

    Examples
    --------
    >>> config = SimulationConfig(n_paths=500, seed=42)
    >>> config.n_paths
    500
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    n_paths: int = Field(
        default=DEFAULT_N_PATHS,
        ge=1,
        le=MAX_N_PATHS,
        description="Number of Monte Carlo paths"
    )
    seed: Optional[StrictInt] = Field(
        default=None,
        description="Base random seed for reproducibility"
    )
    return_volatility: float = Field(
        default=DEFAULT_RETURN_VOLATILITY,
        ge=0,
        le=2.0,
        description="Volatility of yearly log-returns"
    )
    inflation_volatility: float = Field(
        default=DEFAULT_INFLATION_VOLATILITY,
        ge=0,
        le=1.0,
        description="Volatility of yearly log-inflation"
    )
    percentiles: Tuple[float, ...] = Field(
        default=DEFAULT_PERCENTILES,
        min_length=1,
        description="Percentile ranks for band aggregation"
    )
    max_workers: Optional[int] = Field(
        default=None,
        ge=1,
        description="Worker processes for parallel paths"
    )

    @field_validator("percentiles")
    @classmethod
    def validate_percentiles(cls, v):
        """Ensure every rank lies in [0, 100]."""
        for rank in v:
            if not (0 <= rank <= 100):
                raise ValueError(f"Percentile ranks must be in [0, 100], got {rank}")
        return v


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    should be prefixed with FIRESIM_ (e.g., FIRESIM_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    debug : bool
        Enable debug mode (forces DEBUG logging)
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    default_view : str
        View used by the CLI when --view is omitted
    n_paths : int
        Path count used by the CLI when --paths is omitted

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.log_level
    'WARNING'

    # With .env file:
    # FIRESIM_DEFAULT_VIEW=nominal
    >>> settings = AppSettings(_env_file=".env")
    >>> settings.default_view
    'nominal'
    """

    model_config = SettingsConfigDict(
        env_prefix="FIRESIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level"
    )
    default_view: Literal["real", "nominal"] = Field(
        default=DEFAULT_VIEW,
        description="Balance view shown by default"
    )
    n_paths: int = Field(
        default=DEFAULT_N_PATHS,
        ge=1,
        le=MAX_N_PATHS,
        description="Default number of Monte Carlo paths"
    )

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level
