"""Category taxonomy for movements.

Each movement type has its own closed set of category keys. The groupings
(essential, fixed, fun, crypto) are used by the summary metrics.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, List, Type, Union


class MovementType(str, Enum):
    INCOME = 'income'
    EXPENSE = 'expense'
    TRANSFER = 'transfer'


class IncomeCategory(str, Enum):
    SALARY = 'salary'
    SUBSIDY = 'subsidy'
    MEAL_CARD = 'meal_card'
    CREDIT_CARD = 'credit_card'
    EXTRAORDINARY = 'extraordinary'


class ExpenseCategory(str, Enum):
    RENT = 'rent'
    UTILITIES = 'utilities'
    FOOD = 'food'
    LEISURE = 'leisure'
    SHIT_MONEY = 'shit_money'
    TRANSPORT = 'transport'
    HEALTH = 'health'
    SHOPPING = 'shopping'
    SUBSCRIPTIONS = 'subscriptions'


class TransferCategory(str, Enum):
    SAVINGS = 'savings'
    CRYPTO_CORE = 'crypto_core'
    CRYPTO_SHIT = 'crypto_shit'
    BUFFER = 'buffer'


Category = Union[IncomeCategory, ExpenseCategory, TransferCategory]

CATEGORY_ENUMS: Dict[MovementType, Type[Enum]] = {
    MovementType.INCOME: IncomeCategory,
    MovementType.EXPENSE: ExpenseCategory,
    MovementType.TRANSFER: TransferCategory,
}

INCOME_CATEGORY_LABELS: Dict[str, str] = {
    IncomeCategory.SALARY.value: 'Base income',
    IncomeCategory.SUBSIDY.value: 'Subsidy (Jun/Dec)',
    IncomeCategory.MEAL_CARD.value: 'Meal card',
    IncomeCategory.CREDIT_CARD.value: 'Credit card',
    IncomeCategory.EXTRAORDINARY.value: 'Extraordinary income',
}

EXPENSE_CATEGORY_LABELS: Dict[str, str] = {
    ExpenseCategory.RENT.value: 'Rent',
    ExpenseCategory.UTILITIES.value: 'Utilities (power, water, gas)',
    ExpenseCategory.FOOD.value: 'Food',
    ExpenseCategory.LEISURE.value: 'Leisure',
    ExpenseCategory.SHIT_MONEY.value: 'Shit money',
    ExpenseCategory.TRANSPORT.value: 'Transport',
    ExpenseCategory.HEALTH.value: 'Health',
    ExpenseCategory.SHOPPING.value: 'Shopping / needs',
    ExpenseCategory.SUBSCRIPTIONS.value: 'Work / subscriptions',
}

TRANSFER_CATEGORY_LABELS: Dict[str, str] = {
    TransferCategory.SAVINGS.value: 'Transfer to savings',
    TransferCategory.CRYPTO_CORE.value: 'Crypto investment (core)',
    TransferCategory.CRYPTO_SHIT.value: 'Crypto investment (shit)',
    TransferCategory.BUFFER.value: 'Buffer / emergency',
}

_LABELS_BY_TYPE: Dict[MovementType, Dict[str, str]] = {
    MovementType.INCOME: INCOME_CATEGORY_LABELS,
    MovementType.EXPENSE: EXPENSE_CATEGORY_LABELS,
    MovementType.TRANSFER: TRANSFER_CATEGORY_LABELS,
}

ESSENTIAL_CATEGORIES: FrozenSet[str] = frozenset({
    ExpenseCategory.RENT.value,
    ExpenseCategory.UTILITIES.value,
    ExpenseCategory.FOOD.value,
    ExpenseCategory.HEALTH.value,
    ExpenseCategory.TRANSPORT.value,
    ExpenseCategory.SHOPPING.value,
})

FIXED_CATEGORIES: FrozenSet[str] = frozenset({
    ExpenseCategory.RENT.value,
    ExpenseCategory.UTILITIES.value,
    ExpenseCategory.SUBSCRIPTIONS.value,
})

FUN_CATEGORIES: FrozenSet[str] = frozenset({
    ExpenseCategory.LEISURE.value,
    ExpenseCategory.SHIT_MONEY.value,
})

CRYPTO_CATEGORIES: FrozenSet[str] = frozenset({
    TransferCategory.CRYPTO_CORE.value,
    TransferCategory.CRYPTO_SHIT.value,
})


def coerce_movement_type(value: Union[str, MovementType]) -> MovementType:
    """Return the :class:`MovementType` for ``value``.

    Raises:
        ValueError: If ``value`` is not a known movement type
    """
    if isinstance(value, MovementType):
        return value
    return MovementType(str(value).strip().lower())


def categories_for(movement_type: Union[str, MovementType]) -> List[str]:
    """List the category keys of a movement type, in display order."""
    enum_cls = CATEGORY_ENUMS[coerce_movement_type(movement_type)]
    return [member.value for member in enum_cls]


def is_valid_category(movement_type: Union[str, MovementType], category: str) -> bool:
    """Check whether ``category`` belongs to ``movement_type``."""
    try:
        keys = categories_for(movement_type)
    except ValueError:
        return False
    return str(getattr(category, 'value', category)) in keys


def parse_category(movement_type: Union[str, MovementType], category: str) -> Category:
    """Convert a raw key into the category enum of its movement type.

    Raises:
        ValueError: If the key does not belong to the movement type
    """
    enum_cls = CATEGORY_ENUMS[coerce_movement_type(movement_type)]
    return enum_cls(str(getattr(category, 'value', category)))


def category_label(category: str, movement_type: Union[str, MovementType, None] = None) -> str:
    """Return the display label of a category key.

    Unknown keys are returned unchanged.

    Example:
        >>> category_label('shit_money')
        'Shit money'
        >>> category_label('mystery')
        'mystery'
    """
    key = str(getattr(category, 'value', category))
    if movement_type is not None:
        return _LABELS_BY_TYPE[coerce_movement_type(movement_type)].get(key, key)
    for labels in _LABELS_BY_TYPE.values():
        if key in labels:
            return labels[key]
    return key
