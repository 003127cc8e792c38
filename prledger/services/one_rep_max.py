"""One-rep-max estimation (Epley).

1RM = weight                               when reps == 1
1RM = weight × (1 + coefficient × reps)    otherwise

The coefficient defaults to 0.0333 (PRLEDGER_EPLEY_COEFFICIENT). The formula is
increasing in weight, and each extra rep adds the same fraction of the weight.
"""

from __future__ import annotations

from prledger.core.config import get_settings
from prledger.core.exceptions import OneRepMaxNotApplicable


def estimate_one_rep_max(weight: float, reps: int, coefficient: float | None = None) -> float:
    """Estimated maximal single-rep weight for weight × reps."""
    if reps is None or reps < 1:
        raise OneRepMaxNotApplicable(f"1RM needs at least one rep (got {reps})")
    if weight is None or weight <= 0:
        raise OneRepMaxNotApplicable(f"1RM needs a positive weight (got {weight})")
    if reps == 1:
        return float(weight)
    if coefficient is None:
        coefficient = get_settings().epley_coefficient
    return float(weight) * (1 + coefficient * reps)


def weight_for_reps(one_rep_max: float, reps: int, coefficient: float | None = None) -> float:
    """Inverse of estimate_one_rep_max: the weight expected to fail at exactly `reps`."""
    if reps <= 0:
        return 0.0
    if reps == 1:
        return float(one_rep_max)
    if coefficient is None:
        coefficient = get_settings().epley_coefficient
    return float(one_rep_max) / (1 + coefficient * reps)
