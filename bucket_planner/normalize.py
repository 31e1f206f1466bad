"""Load-time normalisation of stored month and settings records.

Stored records come from several schema versions: early months used
camelCase keys and a single ``fixedExpenses``/``foodPlanned`` pair, later
ones split the planned figures per category. Everything is resolved here,
once, into a fully populated :class:`MonthConfig` / :class:`AppSettings`,
so the calculation modules never coalesce optional fields themselves.
"""

from __future__ import annotations

import logging
from dataclasses import fields
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Union

from .models import (
    DEFAULT_BASE_DISTRIBUTION,
    DEFAULT_SUBSIDY_DISTRIBUTION,
    AppSettings,
    MonthConfig,
    _parse_datetime,
    new_id,
)

logger = logging.getLogger(__name__)

# canonical field -> legacy keys, most recent first
_MONTH_ALIASES: Dict[str, Sequence[str]] = {
    'is_closed': ('isClosed',),
    'closed_at': ('closedAt',),
    'income_base': ('incomeBase',),
    'income_meal_card': ('incomeMealCard',),
    'income_extraordinary': ('incomeExtraordinary',),
    'subsidy_applied': ('subsidyApplied',),
    'subsidy_amount': ('subsidyAmount',),
    'actual_fixed_expenses': ('actualFixedExpenses', 'fixedExpenses', 'fixed_expenses'),
    'actual_food_expenses': ('actualFoodExpenses', 'plannedFood', 'foodPlanned'),
    'available_cash': ('availableCash',),
    'planned_rent': ('plannedRent', 'fixedExpenses', 'fixed_expenses'),
    'planned_utilities': ('plannedUtilities',),
    'planned_food': ('plannedFood', 'foodPlanned'),
    'planned_leisure': ('plannedLeisure',),
    'planned_shit_money': ('plannedShitMoney',),
    'planned_transport': ('plannedTransport',),
    'planned_health': ('plannedHealth',),
    'planned_shopping': ('plannedShopping',),
    'planned_subscriptions': ('plannedSubscriptions',),
    'planned_buffer': ('plannedBuffer',),
    'planned_savings': ('plannedSavings',),
    'planned_crypto_core': ('plannedCryptoCore',),
    'planned_crypto_shit': ('plannedCryptoShit',),
    'distribution_core': ('distributionCore',),
    'distribution_shit': ('distributionShit',),
    'distribution_savings': ('distributionSavings',),
    'distribution_fun': ('distributionFun',),
    'distribution_buffer': ('distributionBuffer',),
    'subsidy_distribution_savings': ('subsidyDistributionSavings',),
    'subsidy_distribution_core': ('subsidyDistributionCore',),
    'subsidy_distribution_shit': ('subsidyDistributionShit',),
    'subsidy_distribution_fun': ('subsidyDistributionFun',),
}

_MONTH_DEFAULTS: Dict[str, Any] = {
    'distribution_core': DEFAULT_BASE_DISTRIBUTION['core'],
    'distribution_shit': DEFAULT_BASE_DISTRIBUTION['shit'],
    'distribution_savings': DEFAULT_BASE_DISTRIBUTION['savings'],
    'distribution_fun': DEFAULT_BASE_DISTRIBUTION['fun'],
    'distribution_buffer': DEFAULT_BASE_DISTRIBUTION['buffer'],
    'subsidy_distribution_savings': DEFAULT_SUBSIDY_DISTRIBUTION['savings'],
    'subsidy_distribution_core': DEFAULT_SUBSIDY_DISTRIBUTION['core'],
    'subsidy_distribution_shit': DEFAULT_SUBSIDY_DISTRIBUTION['shit'],
    'subsidy_distribution_fun': DEFAULT_SUBSIDY_DISTRIBUTION['fun'],
}

_SETTINGS_ALIASES: Dict[str, Sequence[str]] = {
    'base_currency': ('baseCurrency',),
    'monthly_income_base': ('monthlyIncomeBase',),
    'monthly_meal_card': ('monthlyMealCardBalance',),
    'monthly_extraordinary_income': ('monthlyExtraordinaryIncome',),
    'subsidy_amount': ('subsidyAmount',),
    'payday_day_of_month': ('paydayDayOfMonth',),
    'planned_rent': ('rentPlanned', 'fixedExpenses'),
    'planned_utilities': ('utilitiesPlanned',),
    'planned_food': ('foodPlannedMonthly', 'foodPlanned'),
    'planned_leisure': ('leisurePlanned',),
    'planned_shit_money': ('shitMoneyPlanned',),
    'planned_transport': ('transportPlanned',),
    'planned_health': ('healthPlanned',),
    'planned_shopping': ('shoppingPlanned',),
    'planned_subscriptions': ('subscriptionsPlanned',),
    'planned_buffer': ('bufferPlanned',),
    'planned_savings': ('savingsPlanned',),
    'planned_crypto_core': ('cryptoCorePlanned',),
    'planned_crypto_shit': ('cryptoShitPlanned',),
    'distribution_core': ('distributionDefaultCore',),
    'distribution_shit': ('distributionDefaultShit',),
    'distribution_savings': ('distributionDefaultSavings',),
    'distribution_fun': ('distributionDefaultFun',),
    'distribution_buffer': ('distributionDefaultBuffer',),
    'subsidy_distribution_savings': ('distributionSubsidySavings',),
    'subsidy_distribution_core': ('distributionSubsidyCore',),
    'subsidy_distribution_shit': ('distributionSubsidyShit',),
    'subsidy_distribution_fun': ('distributionSubsidyFun',),
    'updated_at': ('updatedAt',),
}

_NUMERIC_OPTIONAL = {'actual_fixed_expenses', 'actual_food_expenses'}


def _first_present(record: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def _to_float(value: Any, default: float = 0.0) -> float:
    if value is None or value == '':
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.debug("Replacing non-numeric value %r with %s", value, default)
        return default


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {'1', 'true', 'yes'}
    return bool(value)


def normalize_month(record: Union[Mapping[str, Any], MonthConfig]) -> MonthConfig:
    """Build a canonical :class:`MonthConfig` from any stored record version.

    Each field is resolved from its current key, then its legacy keys, then
    its default. The actual fixed/food figures fall back to the planned ones
    when no actual value was ever entered.

    Args:
        record: A stored month mapping or an existing MonthConfig

    Returns:
        Fully populated MonthConfig
    """
    if isinstance(record, MonthConfig):
        if record.actual_fixed_expenses is not None and record.actual_food_expenses is not None:
            return record
        record = record.to_dict()

    resolved: Dict[str, Any] = {}
    for fld in fields(MonthConfig):
        name = fld.name
        value = _first_present(record, (name, *_MONTH_ALIASES.get(name, ())))
        if name == 'id':
            resolved[name] = str(value) if value is not None else new_id()
        elif name in ('year', 'month'):
            resolved[name] = int(value)
        elif name in ('is_closed', 'subsidy_applied'):
            resolved[name] = _to_bool(value) if value is not None else False
        elif name == 'closed_at':
            resolved[name] = _parse_datetime(value)
        elif name in _NUMERIC_OPTIONAL:
            resolved[name] = None if value is None else _to_float(value)
        else:
            resolved[name] = _to_float(value, _MONTH_DEFAULTS.get(name, 0.0))

    if resolved['actual_fixed_expenses'] is None:
        resolved['actual_fixed_expenses'] = resolved['planned_rent'] + resolved['planned_utilities']
    if resolved['actual_food_expenses'] is None:
        resolved['actual_food_expenses'] = resolved['planned_food']
    if not resolved['is_closed']:
        resolved['closed_at'] = None

    return MonthConfig(**resolved)


def normalize_month_or_none(record: Optional[Mapping[str, Any]]) -> Optional[MonthConfig]:
    return normalize_month(record) if record else None


def normalize_settings(record: Optional[Mapping[str, Any]]) -> AppSettings:
    """Build canonical :class:`AppSettings` from a stored or seed record.

    Seed files group the planned figures under a nested ``planned`` mapping
    keyed by category; that layout is flattened here as well.
    """
    record = dict(record or {})
    planned = record.pop('planned', None)
    if isinstance(planned, Mapping):
        for category, amount in planned.items():
            record.setdefault(f'planned_{category}', amount)

    defaults = AppSettings()
    resolved: Dict[str, Any] = {}
    for fld in fields(AppSettings):
        name = fld.name
        value = _first_present(record, (name, *_SETTINGS_ALIASES.get(name, ())))
        default = getattr(defaults, name)
        if name in ('id', 'base_currency'):
            resolved[name] = str(value) if value is not None else default
        elif name == 'payday_day_of_month':
            resolved[name] = int(value) if value is not None else default
        elif name == 'updated_at':
            resolved[name] = _parse_datetime(value)
        else:
            resolved[name] = _to_float(value, default)
    return AppSettings(**resolved)
