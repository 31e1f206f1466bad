"""Secondary metrics for dashboard display.

Planned-versus-actual maps, cash flow, category-group shares and the
fixed/variable split, plus a tabular view of the bucket summary.
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterable, List, Mapping

import pandas as pd

from .aggregation import aggregate_actuals, empty_totals
from .buckets import BucketSummary
from .models import PLANNED_FIELDS, MonthConfig, Movement
from .money import round2, safe_ratio
from .taxonomy import (
    CRYPTO_CATEGORIES,
    ESSENTIAL_CATEGORIES,
    FIXED_CATEGORIES,
    FUN_CATEGORIES,
    IncomeCategory,
    MovementType,
)

BUCKET_FRAME_COLUMNS = ['Bucket', 'Plan', 'Actual', 'Remaining', 'Progress %']

BUCKET_LABELS = {
    'account': 'Current account',
    'meal_card': 'Meal card',
    'leisure': 'Leisure',
    'shit_money': 'Shit money',
    'savings': 'Savings',
    'crypto': 'Crypto',
    'buffer': 'Buffer',
}


def sum_record(record: Mapping[str, float]) -> float:
    """Rounded sum of a category -> amount mapping."""
    return round2(sum((value or 0.0) for value in record.values()))


def planned_income(month: MonthConfig) -> Dict[str, float]:
    totals = empty_totals(MovementType.INCOME)
    totals[IncomeCategory.SALARY.value] = round2(month.income_base or 0.0)
    totals[IncomeCategory.MEAL_CARD.value] = round2(month.income_meal_card or 0.0)
    totals[IncomeCategory.EXTRAORDINARY.value] = round2(month.income_extraordinary or 0.0)
    if month.subsidy_applied:
        totals[IncomeCategory.SUBSIDY.value] = round2(month.subsidy_amount or 0.0)
    return totals


def _planned_for(month: MonthConfig, movement_type: MovementType) -> Dict[str, float]:
    totals = empty_totals(movement_type)
    for key in totals:
        totals[key] = round2(getattr(month, PLANNED_FIELDS[key]) or 0.0)
    return totals


def planned_expenses(month: MonthConfig) -> Dict[str, float]:
    return _planned_for(month, MovementType.EXPENSE)


def planned_transfers(month: MonthConfig) -> Dict[str, float]:
    return _planned_for(month, MovementType.TRANSFER)


def actual_income(movements: Iterable[Movement]) -> Dict[str, float]:
    return aggregate_actuals(movements, MovementType.INCOME)


def actual_expenses(movements: Iterable[Movement]) -> Dict[str, float]:
    return aggregate_actuals(movements, MovementType.EXPENSE)


def actual_transfers(movements: Iterable[Movement]) -> Dict[str, float]:
    return aggregate_actuals(movements, MovementType.TRANSFER)


def planned_income_total(month: MonthConfig) -> float:
    return sum_record(planned_income(month))


def planned_outflows(month: MonthConfig) -> float:
    """Planned expenses plus planned transfers."""
    return round2(sum_record(planned_expenses(month)) + sum_record(planned_transfers(month)))


def planned_available(month: MonthConfig) -> float:
    """Planned income left after planned expenses."""
    return round2(planned_income_total(month) - sum_record(planned_expenses(month)))


def cash_flow(movements: Iterable[Movement]) -> float:
    """Actual income minus actual expenses; transfers are neutral."""
    movements = list(movements)
    return round2(sum_record(actual_income(movements)) - sum_record(actual_expenses(movements)))


def savings_progress(month: MonthConfig, movements: Iterable[Movement]) -> float:
    """Percent of the planned savings already transferred."""
    actual = actual_transfers(movements)['savings']
    return round2(safe_ratio(actual, month.planned_savings) * 100)


def _income_base(month: MonthConfig, movements: List[Movement]) -> float:
    actual = sum_record(actual_income(movements))
    return actual if actual > 0 else planned_income_total(month)


def _group_share(
    month: MonthConfig,
    movements: Iterable[Movement],
    categories: FrozenSet[str],
    movement_type: MovementType,
) -> float:
    movements = list(movements)
    totals = aggregate_actuals(movements, movement_type)
    spent = sum(amount for key, amount in totals.items() if key in categories)
    return round2(safe_ratio(spent, _income_base(month, movements)) * 100)


def essential_share(month: MonthConfig, movements: Iterable[Movement]) -> float:
    """Percent of income spent on essential categories."""
    return _group_share(month, movements, ESSENTIAL_CATEGORIES, MovementType.EXPENSE)


def fun_share(month: MonthConfig, movements: Iterable[Movement]) -> float:
    return _group_share(month, movements, FUN_CATEGORIES, MovementType.EXPENSE)


def crypto_share(month: MonthConfig, movements: Iterable[Movement]) -> float:
    return _group_share(month, movements, CRYPTO_CATEGORIES, MovementType.TRANSFER)


def fixed_vs_variable(movements: Iterable[Movement]) -> Dict[str, float]:
    """Split actual expenses into fixed and variable totals."""
    totals = actual_expenses(movements)
    fixed = sum(amount for key, amount in totals.items() if key in FIXED_CATEGORIES)
    variable = sum(amount for key, amount in totals.items() if key not in FIXED_CATEGORIES)
    return {'fixed': round2(fixed), 'variable': round2(variable)}


def month_overview(month: MonthConfig, movements: Iterable[Movement]) -> Dict[str, Any]:
    """All headline numbers of a month in one mapping."""
    movements = list(movements)
    split = fixed_vs_variable(movements)
    return {
        'label': month.label,
        'is_closed': month.is_closed,
        'planned_income': planned_income_total(month),
        'planned_expenses': sum_record(planned_expenses(month)),
        'planned_transfers': sum_record(planned_transfers(month)),
        'planned_outflows': planned_outflows(month),
        'planned_available': planned_available(month),
        'actual_income': sum_record(actual_income(movements)),
        'actual_expenses': sum_record(actual_expenses(movements)),
        'actual_transfers': sum_record(actual_transfers(movements)),
        'cash_flow': cash_flow(movements),
        'savings_progress': savings_progress(month, movements),
        'essential_share': essential_share(month, movements),
        'fun_share': fun_share(month, movements),
        'crypto_share': crypto_share(month, movements),
        'fixed_expenses': split['fixed'],
        'variable_expenses': split['variable'],
    }


def bucket_frame(summary: BucketSummary) -> pd.DataFrame:
    """Tabular view of a bucket summary, one row per bucket.

    The current account reports its outflow as actual and the meal card its
    food spend.
    """
    rows = [
        {
            'Bucket': BUCKET_LABELS['account'],
            'Plan': summary.account.plan,
            'Actual': summary.account.outflow,
            'Remaining': summary.account.remaining_plan,
        },
        {
            'Bucket': BUCKET_LABELS['meal_card'],
            'Plan': summary.meal_card.plan,
            'Actual': summary.meal_card.food_spent,
            'Remaining': summary.meal_card.remaining_plan,
        },
    ]
    for key, bucket in summary.goal_buckets().items():
        rows.append({
            'Bucket': BUCKET_LABELS[key],
            'Plan': bucket.plan,
            'Actual': bucket.actual,
            'Remaining': bucket.remaining,
        })
    df = pd.DataFrame(rows, columns=BUCKET_FRAME_COLUMNS[:-1])
    df['Progress %'] = [round2(safe_ratio(a, p) * 100) for a, p in zip(df['Actual'], df['Plan'])]
    return df
