"""Bucket reconciliation: planned targets against ledger activity.

:func:`build_buckets` combines the month distribution, the per-category
movement totals and the account balance records into one snapshot per
tracked bucket. Every field is rounded to the cent as soon as it is derived.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .aggregation import account_flows, aggregate_actuals, filter_month
from .distribution import compute_distribution
from .models import Account, AccountBalance, AccountType, MonthConfig, Movement
from .money import round2
from .taxonomy import ExpenseCategory, MovementType, TransferCategory


@dataclass(frozen=True)
class AccountBucket:
    """Snapshot of an account-backed bucket (current account, meal card)."""

    account_id: Optional[str] = None
    opening: float = 0.0
    inflow: float = 0.0
    outflow: float = 0.0
    current: float = 0.0
    plan: float = 0.0
    remaining_plan: float = 0.0
    manual_balance: float = 0.0
    # only meaningful for the meal card
    food_spent: float = 0.0


@dataclass(frozen=True)
class GoalBucket:
    plan: float = 0.0
    actual: float = 0.0
    remaining: float = 0.0

    @property
    def progress(self) -> float:
        """Share of the plan already reached, 0.0 when nothing is planned."""
        if self.plan <= 0:
            return 0.0
        return self.actual / self.plan


@dataclass(frozen=True)
class CryptoBucket(GoalBucket):
    core: GoalBucket = field(default_factory=GoalBucket)
    shit: GoalBucket = field(default_factory=GoalBucket)


@dataclass(frozen=True)
class BucketSummary:
    account: AccountBucket = field(default_factory=AccountBucket)
    meal_card: AccountBucket = field(default_factory=AccountBucket)
    leisure: GoalBucket = field(default_factory=GoalBucket)
    shit_money: GoalBucket = field(default_factory=GoalBucket)
    savings: GoalBucket = field(default_factory=GoalBucket)
    crypto: CryptoBucket = field(default_factory=CryptoBucket)
    buffer: GoalBucket = field(default_factory=GoalBucket)

    def goal_buckets(self) -> Dict[str, GoalBucket]:
        """Goal-style buckets keyed by name, in display order."""
        return {
            'leisure': self.leisure,
            'shit_money': self.shit_money,
            'savings': self.savings,
            'crypto': self.crypto,
            'buffer': self.buffer,
        }


EMPTY_BUCKET_SUMMARY = BucketSummary()


def find_account(accounts: Iterable[Account], account_type: AccountType) -> Optional[Account]:
    """First account of the given type, or None."""
    for account in accounts:
        if account.type == account_type:
            return account
    return None


def find_balance(balances: Iterable[AccountBalance], account_id: Optional[str]) -> Optional[AccountBalance]:
    if not account_id:
        return None
    for balance in balances:
        if balance.account_id == account_id:
            return balance
    return None


def goal_bucket(plan: float, actual: float) -> GoalBucket:
    plan = round2(plan)
    actual = round2(actual)
    return GoalBucket(plan=plan, actual=actual, remaining=round2(plan - actual))


def account_bucket(
    account: Optional[Account],
    movements: Sequence[Movement],
    balances: Sequence[AccountBalance],
    plan: float,
    food_only_category: Optional[str] = None,
) -> AccountBucket:
    account_id = account.id if account else None
    balance = find_balance(balances, account_id)
    opening = round2(balance.opening_balance) if balance else 0.0
    manual = round2(balance.manual_current_balance) if balance else 0.0
    flows = account_flows(movements, account_id)
    inflow = round2(flows['inflow'])
    outflow = round2(flows['outflow'])
    plan = round2(plan)
    food_spent = 0.0
    if food_only_category is not None:
        food_spent = round2(account_flows(movements, account_id, category=food_only_category)['outflow'])
    return AccountBucket(
        account_id=account_id,
        opening=opening,
        inflow=inflow,
        outflow=outflow,
        current=round2(opening + inflow - outflow),
        plan=plan,
        remaining_plan=round2(plan - outflow),
        manual_balance=manual,
        food_spent=food_spent,
    )


def build_buckets(
    month: MonthConfig,
    movements: Iterable[Movement],
    accounts: Iterable[Account],
    balances: Iterable[AccountBalance],
) -> BucketSummary:
    """Reconcile a month's planned targets against its movements.

    Args:
        month: The month being evaluated
        movements: Ledger movements; only those booked in ``month`` count
        accounts: Known accounts, matched by type (first match wins)
        balances: AccountBalance records of the month, matched by account id

    Returns:
        BucketSummary with one snapshot per tracked bucket

    Example:
        >>> summary = build_buckets(month, movements, accounts, balances)
        >>> summary.meal_card.remaining_plan
        0.0
    """
    month_movements: List[Movement] = filter_month(movements, month.year, month.month)
    account_list = list(accounts)
    balance_list = list(balances)

    distribution = compute_distribution(month)
    targets = distribution.combined_targets
    expenses = aggregate_actuals(month_movements, MovementType.EXPENSE)
    transfers = aggregate_actuals(month_movements, MovementType.TRANSFER)

    current = account_bucket(
        find_account(account_list, AccountType.CURRENT),
        month_movements,
        balance_list,
        plan=distribution.available_cash,
    )
    meal_card = account_bucket(
        find_account(account_list, AccountType.MEAL_CARD),
        month_movements,
        balance_list,
        plan=distribution.meal_card_budget,
        food_only_category=ExpenseCategory.FOOD.value,
    )

    core = goal_bucket(targets['core'], transfers[TransferCategory.CRYPTO_CORE.value])
    shit = goal_bucket(month.planned_crypto_shit or 0.0, transfers[TransferCategory.CRYPTO_SHIT.value])
    crypto_plan = round2(core.plan + shit.plan)
    crypto_actual = round2(core.actual + shit.actual)

    return BucketSummary(
        account=current,
        meal_card=meal_card,
        leisure=goal_bucket(targets['fun'], expenses[ExpenseCategory.LEISURE.value]),
        shit_money=goal_bucket(targets['shit'], expenses[ExpenseCategory.SHIT_MONEY.value]),
        savings=goal_bucket(targets['savings'], transfers[TransferCategory.SAVINGS.value]),
        crypto=CryptoBucket(
            plan=crypto_plan,
            actual=crypto_actual,
            remaining=round2(crypto_plan - crypto_actual),
            core=core,
            shit=shit,
        ),
        buffer=goal_bucket(targets['buffer'], transfers[TransferCategory.BUFFER.value]),
    )
