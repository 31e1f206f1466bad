from datetime import date, datetime

import pytest

from bucket_planner import lifecycle
from bucket_planner.db import open_repository
from bucket_planner.exceptions import MonthClosedError, MonthNotFoundError
from bucket_planner.lifecycle import MonthInputs
from bucket_planner.models import AccountType, Movement
from bucket_planner.taxonomy import IncomeCategory


@pytest.fixture
def repo(tmp_path):
    repo = open_repository(tmp_path / 'planner.db')
    lifecycle.initialize_default_data(repo)
    return repo


def _account_id(repo, account_type):
    return next(a.id for a in repo.list_accounts() if a.type == account_type)


def _income(repo, month):
    return {
        m.category_key: m
        for m in repo.list_movements(month.year, month.month)
        if m.type.value == 'income'
    }


def test_initialize_default_data_is_idempotent(repo):
    assert lifecycle.initialize_default_data(repo) is False
    assert len(repo.list_accounts()) == 6
    settings = repo.get_settings()
    assert settings.monthly_income_base == 1168.0
    assert settings.planned_rent == 480.0


def test_next_and_previous_month():
    assert lifecycle.next_month(2024, 12) == (2025, 1)
    assert lifecycle.next_month(2024, 5) == (2024, 6)
    assert lifecycle.previous_month(2024, 1) == (2023, 12)


def test_ensure_month_seeds_subsidy_month(repo):
    june = lifecycle.ensure_month(repo, 2024, 6)
    assert june.subsidy_applied is True
    assert june.subsidy_amount == 934.0
    assert june.actual_fixed_expenses == 480.0
    assert june.available_cash == 1622.0
    assert june.planned_savings == 498.9

    income = _income(repo, june)
    assert set(income) == {'salary', 'subsidy'}
    assert income['salary'].amount == 1168.0
    assert income['salary'].account_to_id == _account_id(repo, AccountType.CURRENT)
    assert income['subsidy'].is_subsidy_tagged is True
    assert income['salary'].date == date(2024, 6, 1)

    assert len(repo.list_balances(2024, 6)) == 6
    assert lifecycle.ensure_month(repo, 2024, 6).id == june.id


def test_update_inputs_books_extraordinary_income(repo):
    march = lifecycle.ensure_month(repo, 2024, 3)
    salary_id = _income(repo, march)['salary'].id

    updated = lifecycle.update_month_inputs(repo, march, MonthInputs(
        income_base=1000, meal_card=150, extra_income=200, fixed_expenses=480, food_expenses=100,
    ))
    assert updated.subsidy_applied is False
    assert updated.income_extraordinary == 200.0
    assert updated.available_cash == 620.0
    assert repo.get_month(2024, 3) == updated

    income = _income(repo, updated)
    assert set(income) == {'salary', 'meal_card', 'extraordinary'}
    assert income['salary'].id == salary_id
    assert income['salary'].amount == 1000.0
    assert income['meal_card'].account_to_id == _account_id(repo, AccountType.MEAL_CARD)

    lifecycle.update_month_inputs(repo, updated, MonthInputs(
        income_base=1000, meal_card=150, extra_income=0, fixed_expenses=480, food_expenses=100,
    ))
    assert set(_income(repo, updated)) == {'salary', 'meal_card'}


def test_income_sync_leaves_manual_income_alone(repo):
    march = lifecycle.ensure_month(repo, 2024, 3)
    overtime = Movement.create('income', 75, 'salary', on=date(2024, 3, 20),
                               account_to_id=_account_id(repo, AccountType.CURRENT), note='overtime')
    lifecycle.add_movement(repo, overtime)

    updated = lifecycle.update_month_inputs(repo, march, MonthInputs(income_base=1000, fixed_expenses=480))
    salaries = sorted(
        (m.date.day, m.amount, m.note)
        for m in repo.list_movements(2024, 3)
        if m.category_key == 'salary'
    )
    assert salaries == [(1, 1000.0, None), (20, 75.0, 'overtime')]
    auto_id = lifecycle.income_movement_id(updated, IncomeCategory.SALARY)
    assert repo.get_movement(auto_id).amount == 1000.0

    lifecycle.update_month_inputs(repo, updated, MonthInputs(income_base=0, fixed_expenses=480))
    assert repo.get_movement(auto_id) is None
    assert repo.get_movement(overtime.id) == overtime


def test_update_inputs_turns_extra_income_into_subsidy_in_december(repo):
    december = lifecycle.ensure_month(repo, 2024, 12)
    updated = lifecycle.update_month_inputs(repo, december, MonthInputs(
        income_base=1168, extra_income=500, fixed_expenses=480,
    ))
    assert updated.subsidy_applied is True
    assert updated.subsidy_amount == 500.0
    assert updated.income_extraordinary == 0.0
    assert updated.available_cash == 1188.0
    assert _income(repo, updated)['subsidy'].amount == 500.0
    assert 'extraordinary' not in _income(repo, updated)


def test_update_inputs_applies_overrides(repo):
    april = lifecycle.ensure_month(repo, 2024, 4)
    updated = lifecycle.update_month_inputs(
        repo,
        april,
        MonthInputs(income_base=1168, fixed_expenses=480),
        overrides={'savings': 300, 'crypto_shit': 15},
    )
    assert updated.planned_savings == 300.0
    assert updated.planned_crypto_shit == 15.0
    assert repo.get_month(2024, 4).planned_savings == 300.0


def test_record_payday_uses_settings(repo):
    may = lifecycle.ensure_month(repo, 2024, 5)
    for movement in _income(repo, may).values():
        repo.delete_movement(movement.id)
    updated = lifecycle.record_payday(repo, may, repo.get_settings())
    assert updated.income_base == 1168.0
    assert set(_income(repo, updated)) == {'salary'}


def test_closed_month_rejects_edits(repo):
    march = lifecycle.ensure_month(repo, 2024, 3)
    closed, _ = lifecycle.close_month(repo, march, repo.get_settings(), now=datetime(2024, 3, 31, 20))
    assert closed.is_closed is True
    assert repo.get_month(2024, 3).closed_at == datetime(2024, 3, 31, 20)

    with pytest.raises(MonthClosedError):
        lifecycle.update_month_inputs(repo, closed, MonthInputs(income_base=1))
    expense = Movement.create('expense', 10, 'food', on=date(2024, 3, 15),
                              account_from_id=_account_id(repo, AccountType.CURRENT))
    with pytest.raises(MonthClosedError):
        lifecycle.add_movement(repo, expense)
    salary = _income(repo, closed)['salary']
    with pytest.raises(MonthClosedError):
        lifecycle.delete_movement(repo, salary.id)

    reopened = lifecycle.reopen_month(repo, closed)
    assert reopened.is_closed is False
    assert reopened.closed_at is None
    assert lifecycle.add_movement(repo, expense) == expense
    assert lifecycle.delete_movement(repo, expense.id) is True
    assert lifecycle.delete_movement(repo, 'missing') is False


def test_closed_month_rejects_moving_a_movement_out(repo):
    lifecycle.ensure_month(repo, 2024, 4)
    march = lifecycle.ensure_month(repo, 2024, 3)
    current_id = _account_id(repo, AccountType.CURRENT)
    expense = Movement.create('expense', 40, 'leisure', on=date(2024, 3, 10), account_from_id=current_id)
    lifecycle.add_movement(repo, expense)
    lifecycle.close_month(repo, march, repo.get_settings())

    moved = Movement.create('expense', 40, 'leisure', on=date(2024, 4, 2),
                            account_from_id=current_id, movement_id=expense.id)
    with pytest.raises(MonthClosedError):
        lifecycle.add_movement(repo, moved)
    assert repo.get_movement(expense.id).month == 3

    fresh = Movement.create('expense', 40, 'leisure', on=date(2024, 4, 2), account_from_id=current_id)
    assert lifecycle.add_movement(repo, fresh) == fresh


def test_get_month_requires_an_existing_month(repo):
    with pytest.raises(MonthNotFoundError):
        lifecycle.get_month(repo, 2030, 1)
    june = lifecycle.ensure_month(repo, 2024, 6)
    assert lifecycle.get_month(repo, 2024, 6).id == june.id


def test_close_month_carries_manual_balances(repo):
    december = lifecycle.ensure_month(repo, 2024, 12)
    current_id = _account_id(repo, AccountType.CURRENT)
    balance = repo.get_balance(current_id, 2024, 12)
    lifecycle.set_manual_balance(repo, balance, 512.5)
    assert repo.get_balance(current_id, 2024, 12).manual_current_balance == 512.5

    _, january = lifecycle.close_month(repo, december, repo.get_settings())
    assert (january.year, january.month) == (2025, 1)
    carried = repo.get_balance(current_id, 2025, 1)
    assert carried.opening_balance == 512.5
    assert carried.manual_current_balance == 512.5
    assert repo.get_balance(_account_id(repo, AccountType.SAVINGS), 2025, 1).opening_balance == 0.0


def test_close_month_keeps_existing_next_month(repo):
    march = lifecycle.ensure_month(repo, 2024, 3)
    april = lifecycle.ensure_month(repo, 2024, 4)
    _, following = lifecycle.close_month(repo, march, repo.get_settings())
    assert following.id == april.id


def test_delete_month_removes_everything(repo):
    march = lifecycle.ensure_month(repo, 2024, 3)
    assert lifecycle.delete_month(repo, march) == 1
    assert repo.get_month(2024, 3) is None
    assert repo.list_balances(2024, 3) == []


def test_month_snapshot(repo):
    june = lifecycle.ensure_month(repo, 2024, 6)
    snapshot = lifecycle.month_snapshot(repo, june, now=datetime(2024, 6, 5))
    assert snapshot.distribution.available_cash == 1622.0
    assert snapshot.buckets.account.inflow == 2102.0
    assert snapshot.buckets.savings.plan == 498.9
    assert [s.id for s in snapshot.suggestions] == ['on-track']
    assert snapshot.overview['actual_income'] == 2102.0
