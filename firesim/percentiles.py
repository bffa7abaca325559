"""
Cross-sectional percentile aggregation for FireSim.

Mathematical Model
------------------
For each period t, the M path balances B[:, t] are sorted ascending and
the rank-p value is read at the nearest-rank index

    k = min(floor(p / 100 · M), M - 1)

No interpolation is applied. Bands are computed independently per period:
the 90th-percentile curve at year 5 and at year 10 may come from
different paths, so a band is generally not any one realized trajectory.

Whole-path questions ("which simulated path ended near the median?") are
answered separately by representative_paths(), which ranks complete paths
by final balance using the same nearest-rank index.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Dict, Sequence

import numpy as np
import pandas as pd

from .constants import DEFAULT_DIAGNOSTIC_PERCENTILES, DEFAULT_PERCENTILES
from .exceptions import InvalidParameterError, ValidationError
from .utils import period_index

if TYPE_CHECKING:
    from .simulation import PathResult

__all__ = [
    "nearest_rank_index",
    "balance_matrix",
    "compute_percentiles",
    "representative_paths",
    "bands_to_frame",
    "final_balance_summary",
]

logger = logging.getLogger(__name__)


def _check_ranks(ranks: Sequence[float]) -> None:
    if len(ranks) == 0:
        raise InvalidParameterError("at least one percentile rank is required")
    for rank in ranks:
        if not math.isfinite(rank) or not (0 <= rank <= 100):
            raise InvalidParameterError(f"percentile rank must be in [0, 100], got {rank}")


def nearest_rank_index(rank: float, count: int) -> int:
    """Index of the rank-th percentile in a sorted sample of *count* values."""
    if count < 1:
        raise ValidationError("cannot take a percentile of an empty sample")
    return min(int(math.floor(rank / 100.0 * count)), count - 1)


def balance_matrix(results: Sequence[PathResult], use_real: bool = False) -> np.ndarray:
    """
    Stack per-period balances into an array of shape (n_paths, years).

    Raises
    ------
    ValidationError
        If *results* is empty or the paths differ in length.
    """
    if len(results) == 0:
        raise ValidationError("results must contain at least one path")
    lengths = {r.years for r in results}
    if len(lengths) != 1:
        raise ValidationError(
            f"All paths must have the same number of periods, got lengths {sorted(lengths)}."
        )
    if use_real:
        return np.vstack([r.real_ending_balances for r in results])
    return np.vstack([r.ending_balances for r in results])


def compute_percentiles(
    results: Sequence[PathResult],
    ranks: Sequence[float] = DEFAULT_PERCENTILES,
    use_real: bool = False,
) -> Dict[float, np.ndarray]:
    """
    Per-period nearest-rank percentiles across paths.

    Parameters
    ----------
    results : sequence of PathResult
        Paths of equal length.
    ranks : sequence of float, default (10, 25, 50, 75, 90)
        Percentile ranks in [0, 100].
    use_real : bool, default False
        Use inflation-adjusted balances instead of nominal ones.

    Returns
    -------
    dict
        rank -> array of length ``years`` (index 0 = period 1).

    Examples
    --------
    >>> bands = compute_percentiles(results, (10, 50, 90))
    >>> bands[50][-1]  # median final balance
    """
    _check_ranks(ranks)
    matrix = np.sort(balance_matrix(results, use_real=use_real), axis=0)
    n_paths = matrix.shape[0]
    bands = {rank: matrix[nearest_rank_index(rank, n_paths)].copy() for rank in ranks}
    logger.debug(
        "Computed %s bands for ranks %s over %d paths",
        "real" if use_real else "nominal", list(ranks), n_paths,
    )
    return bands


def representative_paths(
    results: Sequence[PathResult],
    ranks: Sequence[float] = DEFAULT_DIAGNOSTIC_PERCENTILES,
) -> Dict[float, PathResult]:
    """
    Whole paths nearest each final-balance rank (for diagnostics).

    Paths are ordered by nominal final balance with a stable sort, then
    picked with the same nearest-rank index as the bands.
    """
    _check_ranks(ranks)
    if len(results) == 0:
        raise ValidationError("results must contain at least one path")
    ordered = sorted(results, key=lambda r: r.final_balance)
    return {rank: ordered[nearest_rank_index(rank, len(ordered))] for rank in ranks}


def bands_to_frame(bands: Dict[float, np.ndarray]) -> pd.DataFrame:
    """Bands as a DataFrame indexed by period with columns p10, p25, ..."""
    if not bands:
        raise ValidationError("bands must contain at least one rank")
    lengths = {len(v) for v in bands.values()}
    if len(lengths) != 1:
        raise ValidationError(f"All bands must have the same length, got {sorted(lengths)}.")
    columns = {f"p{rank:g}": np.asarray(values, dtype=float) for rank, values in bands.items()}
    return pd.DataFrame(columns, index=period_index(lengths.pop()))


def final_balance_summary(
    results: Sequence[PathResult],
    ranks: Sequence[float] = DEFAULT_PERCENTILES,
) -> pd.DataFrame:
    """
    Distribution of final balances, nominal and real.

    Rows: mean, std, min, p<rank>..., max. Columns: nominal, real.
    Percentile rows use the nearest-rank rule, like the bands.
    """
    _check_ranks(ranks)
    nominal = balance_matrix(results, use_real=False)[:, -1]
    real = balance_matrix(results, use_real=True)[:, -1]

    def _column(values: np.ndarray) -> Dict[str, float]:
        ordered = np.sort(values)
        col = {
            "mean": float(values.mean()),
            "std": float(values.std(ddof=1)) if values.size > 1 else 0.0,
            "min": float(ordered[0]),
        }
        for rank in ranks:
            col[f"p{rank:g}"] = float(ordered[nearest_rank_index(rank, ordered.size)])
        col["max"] = float(ordered[-1])
        return col

    return pd.DataFrame({"nominal": _column(nominal), "real": _column(real)})
