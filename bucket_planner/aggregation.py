"""Reduce ledger movements into per-category totals.

The result of :func:`aggregate_actuals` always carries every category key of
the requested movement type, so callers can iterate the full taxonomy and
show zero rows deterministically.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Union

from .models import Movement
from .money import round2
from .taxonomy import MovementType, categories_for, coerce_movement_type

logger = logging.getLogger(__name__)


def empty_totals(movement_type: Union[str, MovementType]) -> Dict[str, float]:
    """Zero-initialised totals for every category of a movement type."""
    return {key: 0.0 for key in categories_for(movement_type)}


def aggregate_actuals(
    movements: Iterable[Movement],
    movement_type: Union[str, MovementType],
) -> Dict[str, float]:
    """Sum movement amounts per category for one movement type.

    Movements of other types are skipped. Categories outside the taxonomy
    are dropped from the sums and reported at DEBUG level only.

    Args:
        movements: Ledger movements, usually those of a single month
        movement_type: 'income', 'expense' or 'transfer'

    Returns:
        Mapping of every category key of the type to its rounded total

    Example:
        >>> aggregate_actuals([], 'transfer')
        {'savings': 0.0, 'crypto_core': 0.0, 'crypto_shit': 0.0, 'buffer': 0.0}
    """
    kind = coerce_movement_type(movement_type)
    totals = empty_totals(kind)
    for movement in movements:
        if movement.type is not kind:
            continue
        key = movement.category_key
        if key not in totals:
            logger.debug(
                "Dropping %s movement %s with unknown category %r",
                kind.value, movement.id, key,
            )
            continue
        totals[key] = round2(totals[key] + (movement.amount or 0.0))
    return totals


def filter_month(movements: Iterable[Movement], year: int, month: int) -> List[Movement]:
    """Keep the movements booked in the given (year, month)."""
    return [m for m in movements if m.year == year and m.month == month]


def account_flows(
    movements: Iterable[Movement],
    account_id: Optional[str],
    category: Optional[str] = None,
) -> Dict[str, float]:
    """Inflow and outflow of one account.

    Inflow is income and transfers credited to the account; outflow is
    expenses and transfers debited from it. When ``category`` is given only
    movements of that category are counted.

    Returns:
        ``{'inflow': float, 'outflow': float}``; both zero when the account
        is unknown
    """
    inflow = 0.0
    outflow = 0.0
    if not account_id:
        return {'inflow': inflow, 'outflow': outflow}
    for movement in movements:
        if category is not None and movement.category_key != category:
            continue
        amount = movement.amount or 0.0
        if movement.account_to_id == account_id and movement.type in (MovementType.INCOME, MovementType.TRANSFER):
            inflow = round2(inflow + amount)
        if movement.account_from_id == account_id and movement.type in (MovementType.EXPENSE, MovementType.TRANSFER):
            outflow = round2(outflow + amount)
    return {'inflow': inflow, 'outflow': outflow}
