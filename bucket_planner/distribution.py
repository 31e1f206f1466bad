"""Month distribution engine.

Turns a month's income and fixed/food spend into planned targets for the
savings, crypto core, discretionary ("shit money"), leisure and buffer
buckets. In June and December an applied subsidy is split under its own
schedule and added on top of the regular monthly split.

Every product is rounded to the cent before targets are combined, so the
combined targets may differ from an unrounded computation by a cent or
two. That difference is expected and must be kept stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional

from .models import MonthConfig
from .money import round2

SUBSIDY_MONTHS = (6, 12)

# target keys shared by base, subsidy and combined breakdowns
TARGET_KEYS = ('savings', 'core', 'shit', 'fun', 'buffer')


def _zero_targets() -> Dict[str, float]:
    return {key: 0.0 for key in TARGET_KEYS}


@dataclass(frozen=True)
class DistributionResult:
    total_income: float = 0.0
    base_pool: float = 0.0
    base_available: float = 0.0
    available_cash: float = 0.0
    base_targets: Dict[str, float] = field(default_factory=_zero_targets)
    subsidy_targets: Dict[str, float] = field(default_factory=_zero_targets)
    combined_targets: Dict[str, float] = field(default_factory=_zero_targets)
    meal_card_budget: float = 0.0
    subsidy_applied: bool = False
    subsidy_amount: float = 0.0


EMPTY_DISTRIBUTION = DistributionResult()


def is_subsidy_month(month: MonthConfig) -> bool:
    """True for June and December, whatever the subsidy flags say."""
    return month.month in SUBSIDY_MONTHS


def is_subsidy_distribution(month: MonthConfig) -> bool:
    """True when the subsidy schedule applies to this month."""
    return (
        is_subsidy_month(month)
        and bool(month.subsidy_applied)
        and (month.subsidy_amount or 0.0) > 0
    )


def fixed_spend(month: MonthConfig) -> float:
    """Actual fixed spend, or the planned rent and utilities when unset."""
    if month.actual_fixed_expenses is not None:
        return month.actual_fixed_expenses
    return (month.planned_rent or 0.0) + (month.planned_utilities or 0.0)


def food_spend(month: MonthConfig) -> float:
    """Actual food spend, or the planned food figure when unset."""
    if month.actual_food_expenses is not None:
        return month.actual_food_expenses
    return month.planned_food or 0.0


def base_percentages(month: MonthConfig) -> Dict[str, float]:
    return {
        'savings': month.distribution_savings,
        'core': month.distribution_core,
        'shit': month.distribution_shit,
        'fun': month.distribution_fun,
        'buffer': month.distribution_buffer,
    }


def subsidy_percentages(month: MonthConfig) -> Dict[str, float]:
    return {
        'savings': month.subsidy_distribution_savings,
        'core': month.subsidy_distribution_core,
        'shit': month.subsidy_distribution_shit,
        'fun': month.subsidy_distribution_fun,
        'buffer': 0.0,
    }


def compute_distribution(month: MonthConfig) -> DistributionResult:
    """Compute the planned bucket targets of a month.

    Args:
        month: Month record; unset percentages carry the documented defaults

    Returns:
        DistributionResult with base, subsidy and combined targets
    """
    income_base = month.income_base or 0.0
    meal_card = month.income_meal_card or 0.0
    extraordinary = month.income_extraordinary or 0.0
    subsidy_amount = month.subsidy_amount or 0.0
    subsidy_flag = bool(month.subsidy_applied)

    total_income = round2(
        income_base + meal_card + extraordinary + (subsidy_amount if subsidy_flag else 0.0)
    )
    subsidy_month = is_subsidy_distribution(month)

    base_pool = round2(income_base + (0.0 if subsidy_month else extraordinary))
    base_available = round2(max(0.0, base_pool - fixed_spend(month) - food_spend(month)))

    base_targets = {
        key: round2(base_available * (pct or 0.0))
        for key, pct in base_percentages(month).items()
    }
    if subsidy_month:
        subsidy_targets = {
            key: round2(subsidy_amount * (pct or 0.0))
            for key, pct in subsidy_percentages(month).items()
        }
    else:
        subsidy_targets = _zero_targets()

    combined_targets = {
        key: round2(base_targets[key] + subsidy_targets[key]) for key in TARGET_KEYS
    }
    # buffer is never fed by the subsidy schedule
    combined_targets['buffer'] = base_targets['buffer']

    available_cash = round2(base_available + (subsidy_amount if subsidy_month else 0.0))

    return DistributionResult(
        total_income=total_income,
        base_pool=base_pool,
        base_available=base_available,
        available_cash=available_cash,
        base_targets=base_targets,
        subsidy_targets=subsidy_targets,
        combined_targets=combined_targets,
        meal_card_budget=round2(meal_card),
        subsidy_applied=subsidy_month,
        subsidy_amount=round2(subsidy_amount) if subsidy_month else 0.0,
    )


def apply_distribution_to_month(month: MonthConfig) -> MonthConfig:
    """Write the combined targets and subsidy bookkeeping back onto the month.

    Applying it twice gives the same record as applying it once.
    """
    result = compute_distribution(month)
    targets = result.combined_targets
    return replace(
        month,
        planned_savings=targets['savings'],
        planned_crypto_core=targets['core'],
        planned_shit_money=targets['shit'],
        planned_leisure=targets['fun'],
        planned_buffer=targets['buffer'],
        subsidy_applied=result.subsidy_applied,
        subsidy_amount=result.subsidy_amount if result.subsidy_applied else round2(month.subsidy_amount or 0.0),
        available_cash=result.available_cash,
    )


# override key -> (planned field, base percentage field or None)
_OVERRIDE_FIELDS = {
    'savings': ('planned_savings', 'distribution_savings'),
    'crypto_core': ('planned_crypto_core', 'distribution_core'),
    'shit_money': ('planned_shit_money', 'distribution_shit'),
    'leisure': ('planned_leisure', 'distribution_fun'),
    'buffer': ('planned_buffer', 'distribution_buffer'),
    'crypto_shit': ('planned_crypto_shit', None),
}


def apply_plan_overrides(month: MonthConfig, overrides: Optional[Mapping[str, Optional[float]]]) -> MonthConfig:
    """Replace planned bucket figures with user-chosen amounts.

    Keys: savings, crypto_core, shit_money, leisure, buffer, crypto_shit.
    A key that is missing or None keeps the current planned figure. The five
    base percentages are rewritten as each figure's share of their total so
    that recomputing the distribution reproduces the chosen split.
    """
    if not overrides:
        return month

    updates: Dict[str, float] = {}
    base_values: Dict[str, float] = {}
    for key, (planned_field, pct_field) in _OVERRIDE_FIELDS.items():
        value = overrides.get(key)
        amount = round2(value) if value is not None else getattr(month, planned_field)
        updates[planned_field] = amount
        if pct_field is not None:
            base_values[pct_field] = amount

    base_total = sum(base_values.values())
    if base_total > 0:
        for pct_field, amount in base_values.items():
            updates[pct_field] = amount / base_total

    return replace(month, **updates)
