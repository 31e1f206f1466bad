"""Month lifecycle: seeding, input edits, payday, closing and rollover.

These functions sit between an entry point and the :class:`Repository`.
They enforce the closed-month rule and keep the automated income movements
in step with the month's income figures. The calculations themselves live
in the pure modules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .buckets import BucketSummary, build_buckets, find_account
from .db import Repository
from .defaults import get_config_value
from .distribution import (
    SUBSIDY_MONTHS,
    DistributionResult,
    apply_distribution_to_month,
    apply_plan_overrides,
    compute_distribution,
    is_subsidy_month,
)
from .exceptions import MonthClosedError, MonthNotFoundError
from .models import (
    Account,
    AccountBalance,
    AccountType,
    AppSettings,
    MonthConfig,
    Movement,
    new_id,
)
from .money import round2
from .normalize import normalize_month, normalize_settings
from .suggestions import Suggestion, generate_suggestions
from .summary import month_overview
from .taxonomy import IncomeCategory, MovementType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonthInputs:
    """Figures the user enters for a month."""

    income_base: float = 0.0
    meal_card: float = 0.0
    extra_income: float = 0.0
    fixed_expenses: float = 0.0
    food_expenses: float = 0.0


@dataclass(frozen=True)
class MonthSnapshot:
    month: MonthConfig
    movements: List[Movement]
    distribution: DistributionResult
    buckets: BucketSummary
    suggestions: List[Suggestion]
    overview: Dict[str, object] = field(default_factory=dict)


def next_month(year: int, month: int) -> Tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def previous_month(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def initialize_default_data(repo: Repository) -> bool:
    """Create the default settings and account set on first run.

    Returns True when anything was created.
    """
    created = False
    if repo.get_settings() is None:
        seed = get_config_value('settings', 'settings', default={})
        repo.put_settings(normalize_settings(seed))
        logger.info("Created default settings")
        created = True
    if not repo.list_accounts():
        for entry in get_config_value('settings', 'accounts', default=[]):
            repo.put_account(Account(id=new_id(), type=entry['type'], name=entry['name']))
        logger.info("Created default accounts")
        created = True
    return created


def load_settings(repo: Repository) -> AppSettings:
    settings = repo.get_settings()
    if settings is None:
        initialize_default_data(repo)
        settings = repo.get_settings()
    return settings


def _account_ids(accounts: Iterable[Account]) -> Dict[AccountType, Optional[str]]:
    accounts = list(accounts)
    ids: Dict[AccountType, Optional[str]] = {}
    for account_type in AccountType:
        found = find_account(accounts, account_type)
        ids[account_type] = found.id if found else None
    return ids


def month_from_settings(year: int, month: int, settings: AppSettings) -> MonthConfig:
    """Seed a month record from the default settings."""
    subsidy = round2(settings.subsidy_amount or 0.0)
    draft = MonthConfig(
        id=new_id(),
        year=year,
        month=month,
        income_base=round2(settings.monthly_income_base),
        income_meal_card=round2(settings.monthly_meal_card),
        income_extraordinary=round2(settings.monthly_extraordinary_income),
        subsidy_applied=month in SUBSIDY_MONTHS and subsidy > 0,
        subsidy_amount=subsidy,
        planned_rent=settings.planned_rent,
        planned_utilities=settings.planned_utilities,
        planned_food=settings.planned_food,
        planned_leisure=settings.planned_leisure,
        planned_shit_money=settings.planned_shit_money,
        planned_transport=settings.planned_transport,
        planned_health=settings.planned_health,
        planned_shopping=settings.planned_shopping,
        planned_subscriptions=settings.planned_subscriptions,
        planned_buffer=settings.planned_buffer,
        planned_savings=settings.planned_savings,
        planned_crypto_core=settings.planned_crypto_core,
        planned_crypto_shit=settings.planned_crypto_shit,
        distribution_core=settings.distribution_core,
        distribution_shit=settings.distribution_shit,
        distribution_savings=settings.distribution_savings,
        distribution_fun=settings.distribution_fun,
        distribution_buffer=settings.distribution_buffer,
        subsidy_distribution_savings=settings.subsidy_distribution_savings,
        subsidy_distribution_core=settings.subsidy_distribution_core,
        subsidy_distribution_shit=settings.subsidy_distribution_shit,
        subsidy_distribution_fun=settings.subsidy_distribution_fun,
    )
    return apply_distribution_to_month(normalize_month(draft))


def income_movement_id(month: MonthConfig, category: IncomeCategory) -> str:
    """Stable id of the automated income movement of a month and category."""
    return f"auto-{month.id}-{category.value}"


def sync_income_movements(
    repo: Repository,
    month: MonthConfig,
    accounts: Iterable[Account],
) -> List[Movement]:
    """Upsert the automated income movements of a month.

    One automated movement per income category is kept, stored under
    :func:`income_movement_id`. Movements entered by hand are never touched.
    A zero amount, or a missing target account, removes the movement instead.
    """
    ids = _account_ids(accounts)
    current = ids[AccountType.CURRENT]
    if month.subsidy_applied:
        subsidy, extraordinary = month.subsidy_amount, 0.0
    else:
        subsidy, extraordinary = 0.0, month.income_extraordinary
    wanted = [
        (IncomeCategory.SALARY, month.income_base, current),
        (IncomeCategory.MEAL_CARD, month.income_meal_card, ids[AccountType.MEAL_CARD]),
        (IncomeCategory.SUBSIDY, subsidy, current),
        (IncomeCategory.EXTRAORDINARY, extraordinary, current),
    ]

    kept: List[Movement] = []
    for category, amount, account_id in wanted:
        auto_id = income_movement_id(month, category)
        previous = repo.get_movement(auto_id)
        amount = round2(amount or 0.0)
        if amount <= 0 or not account_id:
            if previous is not None:
                repo.delete_movement(previous.id)
                logger.info("Removed %s income movement of %s", category.value, month.label)
            continue
        on = previous.date if previous is not None else date(month.year, month.month, 1)
        movement = Movement.create(
            MovementType.INCOME,
            amount,
            category,
            on=on,
            account_to_id=account_id,
            note=previous.note if previous is not None else None,
            is_subsidy_tagged=category is IncomeCategory.SUBSIDY,
            movement_id=auto_id,
        )
        repo.put_movement(movement)
        kept.append(movement)
    logger.info("Synced %d income movements for %s", len(kept), month.label)
    return kept


def create_month_with_defaults(
    repo: Repository,
    year: int,
    month: int,
    settings: AppSettings,
    accounts: Iterable[Account],
    previous_balances: Optional[Iterable[AccountBalance]] = None,
) -> MonthConfig:
    """Create a month, its account balances and its planned income movements.

    Each account opens with the previous month's manual balance, or 0.
    """
    accounts = list(accounts)
    record = month_from_settings(year, month, settings)
    repo.put_month(record)

    carried = {b.account_id: b.manual_current_balance for b in (previous_balances or [])}
    for account in accounts:
        opening = round2(carried.get(account.id, 0.0))
        repo.put_balance(AccountBalance(
            id=new_id(),
            account_id=account.id,
            year=year,
            month=month,
            opening_balance=opening,
            manual_current_balance=opening,
        ))

    sync_income_movements(repo, record, accounts)
    logger.info("Created month %s", record.label)
    return record


def get_month(repo: Repository, year: int, month: int) -> MonthConfig:
    """Return an existing month record.

    Raises:
        MonthNotFoundError: If no record exists for (year, month)
    """
    record = repo.get_month(year, month)
    if record is None:
        raise MonthNotFoundError(f"No month {year}-{month:02d} in {repo.path}")
    return record


def ensure_month(repo: Repository, year: int, month: int) -> MonthConfig:
    """Return the month record, creating it from the defaults when missing."""
    existing = repo.get_month(year, month)
    if existing is not None:
        return existing
    settings = load_settings(repo)
    prev_year, prev_month = previous_month(year, month)
    return create_month_with_defaults(
        repo,
        year,
        month,
        settings,
        repo.list_accounts(),
        previous_balances=repo.list_balances(prev_year, prev_month),
    )


def _ensure_open(month: MonthConfig, action: str) -> None:
    if month.is_closed:
        logger.warning("Rejected %s on closed month %s", action, month.label)
        raise MonthClosedError(month.year, month.month, action)


def update_month_inputs(
    repo: Repository,
    month: MonthConfig,
    inputs: MonthInputs,
    overrides: Optional[Mapping[str, Optional[float]]] = None,
) -> MonthConfig:
    """Apply new income and spend figures to a month and re-plan it.

    In June and December a positive extra income is taken as the subsidy;
    otherwise it is extraordinary income and any subsidy is cleared.

    Raises:
        MonthClosedError: If the month is closed
    """
    _ensure_open(month, "update inputs")
    extra = round2(inputs.extra_income or 0.0)
    draft = replace(
        month,
        income_base=round2(inputs.income_base or 0.0),
        income_meal_card=round2(inputs.meal_card or 0.0),
        income_extraordinary=extra,
        actual_fixed_expenses=round2(inputs.fixed_expenses or 0.0),
        actual_food_expenses=round2(inputs.food_expenses or 0.0),
    )
    if is_subsidy_month(draft) and extra > 0:
        draft = replace(draft, subsidy_applied=True, subsidy_amount=extra, income_extraordinary=0.0)
    else:
        draft = replace(draft, subsidy_applied=False, subsidy_amount=0.0)

    updated = normalize_month(apply_plan_overrides(apply_distribution_to_month(draft), overrides))
    repo.put_month(updated)
    sync_income_movements(repo, updated, repo.list_accounts())
    logger.info("Updated inputs of %s", updated.label)
    return updated


def record_payday(repo: Repository, month: MonthConfig, settings: AppSettings) -> MonthConfig:
    """Book the month's planned income from the settings' monthly figures."""
    inputs = MonthInputs(
        income_base=settings.monthly_income_base,
        meal_card=settings.monthly_meal_card,
        extra_income=settings.monthly_extraordinary_income,
        fixed_expenses=month.actual_fixed_expenses,
        food_expenses=month.actual_food_expenses,
    )
    return update_month_inputs(repo, month, inputs)


def add_movement(repo: Repository, movement: Movement) -> Movement:
    """Store a new or edited movement.

    An edit must leave both the stored month and the new month open.

    Raises:
        MonthClosedError: If the movement's month, or the month it is moved
            out of, is closed
    """
    stored = repo.get_movement(movement.id)
    if stored is not None and (stored.year, stored.month) != (movement.year, movement.month):
        source = repo.get_month(stored.year, stored.month)
        if source is not None:
            _ensure_open(source, "move movements")
    target = repo.get_month(movement.year, movement.month)
    if target is not None:
        _ensure_open(target, "add movements")
    repo.put_movement(movement)
    logger.info(
        "Saved %s movement %s of %.2f in %s",
        movement.type.value, movement.category_key, movement.amount, f"{movement.year}-{movement.month:02d}",
    )
    return movement


def delete_movement(repo: Repository, movement_id: str) -> bool:
    """Delete a movement; returns False when it does not exist.

    Raises:
        MonthClosedError: If the movement's month is closed
    """
    movement = repo.get_movement(movement_id)
    if movement is None:
        return False
    target = repo.get_month(movement.year, movement.month)
    if target is not None:
        _ensure_open(target, "delete movements")
    deleted = repo.delete_movement(movement_id)
    logger.info("Deleted movement %s", movement_id)
    return deleted


def set_manual_balance(repo: Repository, balance: AccountBalance, value: float) -> AccountBalance:
    updated = replace(balance, manual_current_balance=round2(value))
    repo.put_balance(updated)
    return updated


def close_month(
    repo: Repository,
    month: MonthConfig,
    settings: AppSettings,
    now: Optional[datetime] = None,
) -> Tuple[MonthConfig, MonthConfig]:
    """Close a month and make sure the following one exists.

    The next month is created with this month's manual balances as its
    opening balances. Returns ``(closed_month, next_month)``.
    """
    if month.is_closed:
        logger.warning("Month %s is already closed", month.label)
        closed = month
    else:
        closed = replace(month, is_closed=True, closed_at=now or datetime.now())
        repo.put_month(closed)
        logger.info("Closed month %s", closed.label)

    next_year, next_number = next_month(month.year, month.month)
    following = repo.get_month(next_year, next_number)
    if following is None:
        following = create_month_with_defaults(
            repo,
            next_year,
            next_number,
            settings,
            repo.list_accounts(),
            previous_balances=repo.list_balances(month.year, month.month),
        )
    return closed, following


def reopen_month(repo: Repository, month: MonthConfig) -> MonthConfig:
    if not month.is_closed:
        return month
    reopened = replace(month, is_closed=False, closed_at=None)
    repo.put_month(reopened)
    logger.info("Reopened month %s", reopened.label)
    return reopened


def delete_month(repo: Repository, month: MonthConfig) -> int:
    """Delete a month with all of its movements and balances."""
    return repo.delete_month(month)


def month_snapshot(
    repo: Repository,
    month: MonthConfig,
    now: Optional[datetime] = None,
) -> MonthSnapshot:
    """Recompute everything the dashboard shows for a month."""
    movements = repo.list_movements(month.year, month.month)
    accounts = repo.list_accounts()
    balances = repo.list_balances(month.year, month.month)
    buckets = build_buckets(month, movements, accounts, balances)
    return MonthSnapshot(
        month=month,
        movements=movements,
        distribution=compute_distribution(month),
        buckets=buckets,
        suggestions=generate_suggestions(month, buckets, now=now),
        overview=month_overview(month, movements),
    )
