"""
Weight unit helpers.

Products are weighed in the traditional tola / masha / rati system:

    1 tola  = 12 masha
    1 masha = 8 rati
    1 tola  = 96 rati

Grams are only used for display.
"""

import math
from dataclasses import dataclass

MASHA_PER_TOLA = 12
RATI_PER_MASHA = 8
RATI_PER_TOLA = MASHA_PER_TOLA * RATI_PER_MASHA

TOLA_TO_GRAMS = 11.6638038


def total_weight_in_tola(
    tola: float | None = 0,
    masha: float | None = 0,
    rati: float | None = 0,
) -> float:
    """
    Collapse a tola/masha/rati weight into fractional tola.

    Missing fields count as zero. No rounding is applied.

    Args:
        tola: Whole or fractional tola.
        masha: Masha (1/12 tola).
        rati: Rati (1/96 tola).

    Returns:
        float: Total weight in tola.
    """
    return (tola or 0) + (masha or 0) / MASHA_PER_TOLA + (rati or 0) / RATI_PER_TOLA


@dataclass
class TolaWeight:
    """A weight split into tola, masha and rati."""

    tola: float = 0
    masha: float = 0
    rati: float = 0

    @property
    def total_tola(self) -> float:
        return total_weight_in_tola(self.tola, self.masha, self.rati)

    def to_grams(self) -> float:
        return self.total_tola * TOLA_TO_GRAMS


def convert_tola_to_grams(tola: float | None, masha: float | None, rati: float | None) -> float:
    """Convert a tola/masha/rati weight to grams."""
    return total_weight_in_tola(tola, masha, rati) * TOLA_TO_GRAMS


def convert_grams_to_tola(grams: float | None) -> TolaWeight:
    """
    Split a gram weight into whole tola, whole masha and remaining rati.

    Rati is rounded to 2 decimal places.

    Args:
        grams: Weight in grams.

    Returns:
        TolaWeight: The split weight.
    """
    total_tola = (grams or 0) / TOLA_TO_GRAMS
    tola = math.floor(total_tola)
    remaining_masha = (total_tola - tola) * MASHA_PER_TOLA
    masha = math.floor(remaining_masha)
    rati = round((remaining_masha - masha) * RATI_PER_MASHA, 2)

    return TolaWeight(tola=tola, masha=masha, rati=rati)
