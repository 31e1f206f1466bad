"""Domain records: month configuration, movements, accounts and balances.

All records are frozen dataclasses. Changes produce new instances via
:func:`dataclasses.replace`, which keeps the calculation layer free of
shared mutable state.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from .defaults import base_distribution_defaults, subsidy_distribution_defaults
from .exceptions import InvalidMovementError
from .money import round2
from .taxonomy import (
    Category,
    ExpenseCategory,
    MovementType,
    TransferCategory,
    coerce_movement_type,
    parse_category,
)

DEFAULT_BASE_DISTRIBUTION: Dict[str, float] = base_distribution_defaults()
DEFAULT_SUBSIDY_DISTRIBUTION: Dict[str, float] = subsidy_distribution_defaults()

# Expense/transfer category key -> planned field on MonthConfig and AppSettings
PLANNED_FIELDS: Dict[str, str] = {
    ExpenseCategory.RENT.value: 'planned_rent',
    ExpenseCategory.UTILITIES.value: 'planned_utilities',
    ExpenseCategory.FOOD.value: 'planned_food',
    ExpenseCategory.LEISURE.value: 'planned_leisure',
    ExpenseCategory.SHIT_MONEY.value: 'planned_shit_money',
    ExpenseCategory.TRANSPORT.value: 'planned_transport',
    ExpenseCategory.HEALTH.value: 'planned_health',
    ExpenseCategory.SHOPPING.value: 'planned_shopping',
    ExpenseCategory.SUBSCRIPTIONS.value: 'planned_subscriptions',
    TransferCategory.BUFFER.value: 'planned_buffer',
    TransferCategory.SAVINGS.value: 'planned_savings',
    TransferCategory.CRYPTO_CORE.value: 'planned_crypto_core',
    TransferCategory.CRYPTO_SHIT.value: 'planned_crypto_shit',
}


def new_id() -> str:
    return str(uuid.uuid4())


class AccountType(str, Enum):
    CURRENT = 'current'
    MEAL_CARD = 'meal_card'
    CREDIT_CARD = 'credit_card'
    SAVINGS = 'savings'
    CRYPTO_CORE = 'crypto_core'
    CRYPTO_SHIT = 'crypto_shit'


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _record_dict(record: Any) -> Dict[str, Any]:
    return {key: _serialize(value) for key, value in asdict(record).items()}


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value)).date()


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass(frozen=True)
class MonthConfig:
    """Planning record for one (year, month) pair."""

    id: str
    year: int
    month: int
    is_closed: bool = False
    closed_at: Optional[datetime] = None
    income_base: float = 0.0
    income_meal_card: float = 0.0
    income_extraordinary: float = 0.0
    subsidy_applied: bool = False
    subsidy_amount: float = 0.0
    # None means "not entered yet"; the planned figures are used instead
    actual_fixed_expenses: Optional[float] = None
    actual_food_expenses: Optional[float] = None
    available_cash: float = 0.0
    planned_rent: float = 0.0
    planned_utilities: float = 0.0
    planned_food: float = 0.0
    planned_leisure: float = 0.0
    planned_shit_money: float = 0.0
    planned_transport: float = 0.0
    planned_health: float = 0.0
    planned_shopping: float = 0.0
    planned_subscriptions: float = 0.0
    planned_buffer: float = 0.0
    planned_savings: float = 0.0
    planned_crypto_core: float = 0.0
    planned_crypto_shit: float = 0.0
    distribution_core: float = DEFAULT_BASE_DISTRIBUTION['core']
    distribution_shit: float = DEFAULT_BASE_DISTRIBUTION['shit']
    distribution_savings: float = DEFAULT_BASE_DISTRIBUTION['savings']
    distribution_fun: float = DEFAULT_BASE_DISTRIBUTION['fun']
    distribution_buffer: float = DEFAULT_BASE_DISTRIBUTION['buffer']
    subsidy_distribution_savings: float = DEFAULT_SUBSIDY_DISTRIBUTION['savings']
    subsidy_distribution_core: float = DEFAULT_SUBSIDY_DISTRIBUTION['core']
    subsidy_distribution_shit: float = DEFAULT_SUBSIDY_DISTRIBUTION['shit']
    subsidy_distribution_fun: float = DEFAULT_SUBSIDY_DISTRIBUTION['fun']

    @property
    def key(self) -> tuple:
        return (self.year, self.month)

    @property
    def label(self) -> str:
        return f"{self.year}-{self.month:02d}"

    def to_dict(self) -> Dict[str, Any]:
        return _record_dict(self)


@dataclass(frozen=True)
class Movement:
    """A single income, expense or transfer entry.

    Records loaded from storage are accepted as-is: a category that is not
    part of the taxonomy stays a plain string and is ignored by aggregation.
    New movements go through :meth:`create`, which validates them.
    """

    id: str
    date: date
    type: MovementType
    amount: float
    category: Union[Category, str]
    account_from_id: Optional[str] = None
    account_to_id: Optional[str] = None
    note: Optional[str] = None
    is_subsidy_tagged: bool = False
    year: Optional[int] = None
    month: Optional[int] = None

    def __post_init__(self) -> None:
        movement_type = coerce_movement_type(self.type)
        object.__setattr__(self, 'type', movement_type)
        try:
            object.__setattr__(self, 'category', parse_category(movement_type, self.category))
        except ValueError:
            object.__setattr__(self, 'category', str(self.category) if self.category is not None else '')
        if self.year is None:
            object.__setattr__(self, 'year', self.date.year)
        if self.month is None:
            object.__setattr__(self, 'month', self.date.month)

    @property
    def category_key(self) -> str:
        return str(getattr(self.category, 'value', self.category))

    @classmethod
    def create(
        cls,
        movement_type: Union[str, MovementType],
        amount: float,
        category: Union[str, Category],
        on: Optional[date] = None,
        account_from_id: Optional[str] = None,
        account_to_id: Optional[str] = None,
        note: Optional[str] = None,
        is_subsidy_tagged: bool = False,
        movement_id: Optional[str] = None,
    ) -> 'Movement':
        """Build and validate a new movement.

        Raises:
            InvalidMovementError: If the type, category, amount or account
                references are not consistent
        """
        try:
            kind = coerce_movement_type(movement_type)
        except ValueError as exc:
            raise InvalidMovementError(f"Unknown movement type: {movement_type!r}") from exc
        try:
            parsed = parse_category(kind, category)
        except ValueError as exc:
            raise InvalidMovementError(
                f"Category {category!r} is not valid for {kind.value} movements"
            ) from exc
        try:
            value = round2(float(amount))
        except (TypeError, ValueError) as exc:
            raise InvalidMovementError(f"Amount must be a number, got {amount!r}") from exc
        if value <= 0:
            raise InvalidMovementError("Amount must be greater than zero")

        if kind is MovementType.EXPENSE:
            if not account_from_id or account_to_id:
                raise InvalidMovementError("Expenses need a source account and no destination")
        elif kind is MovementType.INCOME:
            if not account_to_id or account_from_id:
                raise InvalidMovementError("Income needs a destination account and no source")
        else:
            if not account_from_id or not account_to_id:
                raise InvalidMovementError("Transfers need both a source and a destination account")
            if account_from_id == account_to_id:
                raise InvalidMovementError("Transfer source and destination must differ")

        when = on or date.today()
        return cls(
            id=movement_id or new_id(),
            date=when,
            type=kind,
            amount=value,
            category=parsed,
            account_from_id=account_from_id,
            account_to_id=account_to_id,
            note=(note or None),
            is_subsidy_tagged=bool(is_subsidy_tagged),
            year=when.year,
            month=when.month,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Movement':
        when = _parse_date(data['date'])
        return cls(
            id=str(data['id']),
            date=when,
            type=data['type'],
            amount=float(data.get('amount') or 0.0),
            category=data.get('category') or '',
            account_from_id=data.get('account_from_id'),
            account_to_id=data.get('account_to_id'),
            note=data.get('note'),
            is_subsidy_tagged=bool(data.get('is_subsidy_tagged', False)),
            year=data.get('year'),
            month=data.get('month'),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = _record_dict(self)
        data['category'] = self.category_key
        return data


@dataclass(frozen=True)
class Account:
    id: str
    type: Union[AccountType, str]
    name: str
    is_active: bool = True

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, 'type', AccountType(getattr(self.type, 'value', self.type)))
        except ValueError:
            # unknown account types are kept so lookups simply never match them
            object.__setattr__(self, 'type', str(self.type))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Account':
        return cls(
            id=str(data['id']),
            type=data['type'],
            name=str(data.get('name') or ''),
            is_active=bool(data.get('is_active', True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _record_dict(self)


@dataclass(frozen=True)
class AccountBalance:
    """Opening and manually entered balance of one account in one month."""

    id: str
    account_id: str
    year: int
    month: int
    opening_balance: float = 0.0
    manual_current_balance: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'AccountBalance':
        return cls(
            id=str(data['id']),
            account_id=str(data['account_id']),
            year=int(data['year']),
            month=int(data['month']),
            opening_balance=float(data.get('opening_balance') or 0.0),
            manual_current_balance=float(data.get('manual_current_balance') or 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _record_dict(self)


@dataclass(frozen=True)
class AppSettings:
    """Singleton defaults used to seed each new month."""

    id: str = 'default'
    base_currency: str = 'EUR'
    monthly_income_base: float = 0.0
    monthly_meal_card: float = 0.0
    monthly_extraordinary_income: float = 0.0
    subsidy_amount: float = 0.0
    payday_day_of_month: int = 30
    planned_rent: float = 0.0
    planned_utilities: float = 0.0
    planned_food: float = 0.0
    planned_leisure: float = 0.0
    planned_shit_money: float = 0.0
    planned_transport: float = 0.0
    planned_health: float = 0.0
    planned_shopping: float = 0.0
    planned_subscriptions: float = 0.0
    planned_buffer: float = 0.0
    planned_savings: float = 0.0
    planned_crypto_core: float = 0.0
    planned_crypto_shit: float = 0.0
    distribution_core: float = DEFAULT_BASE_DISTRIBUTION['core']
    distribution_shit: float = DEFAULT_BASE_DISTRIBUTION['shit']
    distribution_savings: float = DEFAULT_BASE_DISTRIBUTION['savings']
    distribution_fun: float = DEFAULT_BASE_DISTRIBUTION['fun']
    distribution_buffer: float = DEFAULT_BASE_DISTRIBUTION['buffer']
    subsidy_distribution_savings: float = DEFAULT_SUBSIDY_DISTRIBUTION['savings']
    subsidy_distribution_core: float = DEFAULT_SUBSIDY_DISTRIBUTION['core']
    subsidy_distribution_shit: float = DEFAULT_SUBSIDY_DISTRIBUTION['shit']
    subsidy_distribution_fun: float = DEFAULT_SUBSIDY_DISTRIBUTION['fun']
    updated_at: Optional[datetime] = field(default=None, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return _record_dict(self)
