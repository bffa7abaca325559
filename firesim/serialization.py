"""
Serialization module for FireSim.

Purpose
-------
Converts scenario parameters and simulation results to and from plain
data, so runs can be shared and reproduced:

- Query strings: parameters + seed + view, the shareable form of a run
- JSON parameter files
- JSON result files (bands, summary, optionally every path)
- CSV export of percentile bands

Design Principles
-----------------
- Type-safe: every inbound value goes through the Pydantic configs
- Lossless: floats are written with repr(), the seed as an exact integer
- Reproducible: a result file carries the parameters and the seed
- Backward compatible: schema versions are checked on load

Example
-------
>>> from firesim.serialization import to_query_string, from_query_string
>>> query = to_query_string(params, seed=42, view="nominal")
>>> state = from_query_string(query)
>>> state.params == params, state.seed, state.view
(True, 42, 'nominal')
"""

from __future__ import annotations

import json
import logging
import re
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit

import pydantic

from .config import SimulationParamsConfig
from .constants import DEFAULT_VIEW, VIEWS
from .exceptions import InvalidParameterError, QueryStringError, ValidationError
from .percentiles import bands_to_frame
from .types import PathResultDict, ResultFileDict, SimulationParamsDict, YearRecordDict

if TYPE_CHECKING:
    from .simulation import MonteCarloResult, PathResult, SimulationParams, YearRecord

__all__ = [
    "SCHEMA_VERSION",
    "QUERY_KEYS",
    "ShareableState",
    "to_query_string",
    "from_query_string",
    "params_to_dict",
    "params_from_dict",
    "save_params",
    "load_params",
    "path_result_to_dict",
    "save_results",
    "load_results",
    "save_bands_csv",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "0.1.0"

QUERY_KEYS: Dict[str, str] = {
    "starting_assets": "startingAssets",
    "annual_return": "annualReturn",
    "initial_contribution": "initialContribution",
    "contribution_growth_rate": "contributionGrowthRate",
    "inflation_rate": "inflationRate",
    "years": "years",
}
"""Parameter field -> query-string key."""

_INTEGER = re.compile(r"[+-]?\d+")


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

def params_to_dict(params: SimulationParams) -> SimulationParamsDict:
    """
    Convert SimulationParams to a plain dictionary.

    Returns
    -------
    dict
        snake_case field names, floats and an int horizon.
    """
    return {
        "starting_assets": float(params.starting_assets),
        "annual_return": float(params.annual_return),
        "initial_contribution": float(params.initial_contribution),
        "contribution_growth_rate": float(params.contribution_growth_rate),
        "inflation_rate": float(params.inflation_rate),
        "years": int(params.years),
    }


def params_from_dict(data: Mapping[str, Any]) -> SimulationParams:
    """
    Create SimulationParams from a dictionary, filling missing fields with
    the default scenario.

    Raises
    ------
    InvalidParameterError
        If a value is missing its type, out of bounds, or an unknown key is
        present.
    """
    try:
        config = SimulationParamsConfig.model_validate(dict(data))
    except pydantic.ValidationError as e:
        raise InvalidParameterError(f"Invalid simulation parameters: {e}") from e
    return config.to_params()


def save_params(params: SimulationParams, path: Path) -> None:
    """
    Save parameters to a JSON file.

    Examples
    --------
    >>> save_params(params, Path("scenario.json"))
    """
    config = {
        "schema_version": SCHEMA_VERSION,
        "params": params_to_dict(params),
    }
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(config, f, indent=2)
    logger.debug("Saved parameters to %s", path)


def _check_schema_version(config: Mapping[str, Any]) -> None:
    schema_version = config.get("schema_version", "0.0.0")
    if schema_version != SCHEMA_VERSION:
        warnings.warn(
            f"File schema version {schema_version} differs from current "
            f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
            UserWarning,
        )


def load_params(path: Path) -> SimulationParams:
    """
    Load parameters from a JSON file written by save_params().

    A bare mapping of parameter fields (no ``params`` wrapper) is accepted
    too, for hand-written files.
    """
    with open(path, "r") as f:
        config = json.load(f)
    if not isinstance(config, dict):
        raise ValidationError(f"{path}: expected a JSON object, got {type(config).__name__}")

    if "params" in config:
        _check_schema_version(config)
        data = config["params"]
    else:
        data = {k: v for k, v in config.items() if k != "schema_version"}
    logger.debug("Loaded parameters from %s", path)
    return params_from_dict(data)


# ---------------------------------------------------------------------------
# Query strings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ShareableState:
    """Everything needed to reproduce a run: parameters, seed and view."""

    params: SimulationParams
    seed: Optional[int] = None
    view: str = DEFAULT_VIEW


def _format_number(value: float | int) -> str:
    if isinstance(value, int):
        return str(value)
    number = float(value)
    return str(int(number)) if number.is_integer() else repr(number)


def to_query_string(
    params: SimulationParams,
    *,
    seed: Optional[int] = None,
    view: str = DEFAULT_VIEW,
) -> str:
    """
    Encode parameters, seed and view as a URL query string.

    Floats are written with repr() so they parse back to the same double.
    The seed is omitted when None.

    Examples
    --------
    >>> to_query_string(params, seed=42)
    'startingAssets=100000&annualReturn=0.07&...&view=real&seed=42'
    """
    if view not in VIEWS:
        raise ValidationError(f"view must be one of {VIEWS}, got {view!r}")
    values = params_to_dict(params)
    pairs = [(QUERY_KEYS[name], _format_number(values[name])) for name in QUERY_KEYS]
    pairs.append(("view", view))
    if seed is not None:
        pairs.append(("seed", str(int(seed))))
    return urlencode(pairs)


def _parse_float(key: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError as e:
        raise QueryStringError(f"{key} must be a number, got {raw!r}") from e


def _parse_int(key: str, raw: str) -> int:
    text = raw.strip()
    if not _INTEGER.fullmatch(text):
        raise QueryStringError(f"{key} must be an integer, got {raw!r}")
    return int(text)


def from_query_string(query: str) -> ShareableState:
    """
    Decode a query string (or a full URL) into a ShareableState.

    Missing parameter keys fall back to the default scenario. ``view`` is
    ``"nominal"`` only when given exactly so; anything else means
    ``"real"``. Unknown keys are ignored. Empty values count as missing.

    Raises
    ------
    QueryStringError
        If a value is not a number, or the seed / years is not an exact
        integer.
    InvalidParameterError
        If a parsed value is out of bounds.
    """
    if "://" in query:
        query = urlsplit(query).query
    query = query.lstrip("?")
    raw = {key: value for key, value in parse_qsl(query, keep_blank_values=False)}

    data: Dict[str, Any] = {}
    for name, key in QUERY_KEYS.items():
        if key not in raw:
            continue
        if name == "years":
            data[name] = _parse_int(key, raw[key])
        else:
            data[name] = _parse_float(key, raw[key])

    seed = _parse_int("seed", raw["seed"]) if "seed" in raw else None
    view = "nominal" if raw.get("view") == "nominal" else "real"
    return ShareableState(params=params_from_dict(data), seed=seed, view=view)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

def _year_to_dict(record: YearRecord) -> YearRecordDict:
    return {
        "period": record.period,
        "starting_balance": record.starting_balance,
        "contribution": record.contribution,
        "return_rate": record.return_rate,
        "inflation_rate": record.inflation_rate,
        "growth": record.growth,
        "ending_balance": record.ending_balance,
        "cumulative_inflation_factor": record.cumulative_inflation_factor,
        "real_ending_balance": record.real_ending_balance,
    }


def path_result_to_dict(path: PathResult, seed: int) -> PathResultDict:
    """
    Convert one PathResult to a dictionary.

    Parameters
    ----------
    path : PathResult
        Path to serialize.
    seed : int
        Seed of the generator that produced it (base_seed + index).
    """
    return {
        "seed": int(seed),
        "final_balance": path.final_balance,
        "final_real_balance": path.final_real_balance,
        "total_contributions": path.total_contributions,
        "total_growth": path.total_growth,
        "periods": [_year_to_dict(p) for p in path.periods],
    }


def save_results(result: MonteCarloResult, path: Path, include_paths: bool = True) -> None:
    """
    Save a Monte Carlo run to a JSON file.

    Parameters
    ----------
    result : MonteCarloResult
        Run to save.
    path : Path
        Output file path.
    include_paths : bool
        Whether to include every path's yearly records (large for many
        paths; the bands and summary are always written).
    """
    summary = result.summary()
    data: ResultFileDict = {
        "schema_version": SCHEMA_VERSION,
        "params": params_to_dict(result.params),
        "seed": result.seed,
        "n_paths": result.n_paths,
        "percentiles": [float(p) for p in result.percentiles],
        "bands": {
            view: {f"{rank:g}": [float(v) for v in values] for rank, values in result.bands(view).items()}
            for view in VIEWS
        },
        "summary": {col: {row: float(v) for row, v in summary[col].items()} for col in summary.columns},
    }
    if include_paths:
        data["paths"] = [
            path_result_to_dict(p, result.seed + i) for i, p in enumerate(result.results)
        ]

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    logger.debug("Saved %d-path result to %s", result.n_paths, path)


def load_results(path: Path) -> Dict[str, Any]:
    """
    Load a result file written by save_results().

    Note: Returns a dictionary, with ``params`` rebuilt as SimulationParams;
    re-running with the stored seed reproduces the paths exactly.
    """
    with open(path, "r") as f:
        data = json.load(f)
    _check_schema_version(data)
    data["params"] = params_from_dict(data["params"])
    return data


def save_bands_csv(bands: Mapping[float, Any], path: Path) -> None:
    """Write percentile bands as CSV (one row per period)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    bands_to_frame(dict(bands)).to_csv(path)
    logger.debug("Saved bands to %s", path)
