from datetime import date

import pytest

from bucket_planner.exceptions import InvalidMovementError
from bucket_planner.models import Account, AccountType, MonthConfig, Movement
from bucket_planner.taxonomy import ExpenseCategory, MovementType


def test_create_expense_derives_month_key():
    movement = Movement.create('expense', '12.5', 'food', on=date(2024, 3, 9), account_from_id='acc-meal')
    assert movement.type is MovementType.EXPENSE
    assert movement.category is ExpenseCategory.FOOD
    assert movement.amount == 12.5
    assert (movement.year, movement.month) == (2024, 3)
    assert movement.id


@pytest.mark.parametrize('kwargs', [
    dict(movement_type='expense', amount=0, category='food', account_from_id='a'),
    dict(movement_type='expense', amount=-5, category='food', account_from_id='a'),
    dict(movement_type='expense', amount='abc', category='food', account_from_id='a'),
    dict(movement_type='income', amount=10, category='food', account_to_id='a'),
    dict(movement_type='expense', amount=10, category='food'),
    dict(movement_type='expense', amount=10, category='food', account_from_id='a', account_to_id='b'),
    dict(movement_type='income', amount=10, category='salary', account_from_id='a', account_to_id='b'),
    dict(movement_type='transfer', amount=10, category='savings', account_from_id='a'),
    dict(movement_type='transfer', amount=10, category='savings', account_from_id='a', account_to_id='a'),
    dict(movement_type='refund', amount=10, category='food', account_from_id='a'),
])
def test_create_rejects_inconsistent_movements(kwargs):
    with pytest.raises(InvalidMovementError):
        Movement.create(**kwargs)


def test_invalid_movement_error_is_value_error():
    with pytest.raises(ValueError):
        Movement.create('expense', 0, 'food', account_from_id='a')


def test_stored_movement_keeps_unknown_category():
    movement = Movement.from_dict({
        'id': 'legacy', 'date': '2023-11-02', 'type': 'expense', 'amount': 20,
        'category': 'lazer', 'account_from_id': 'a',
    })
    assert movement.category == 'lazer'
    assert movement.category_key == 'lazer'
    assert movement.to_dict()['date'] == '2023-11-02'
    assert (movement.year, movement.month) == (2023, 11)


def test_account_type_parsing():
    assert Account(id='a', type='meal_card', name='Meal').type is AccountType.MEAL_CARD
    assert Account(id='b', type='mealCard', name='Old').type == 'mealCard'


def test_month_defaults_and_label():
    month = MonthConfig(id='m', year=2024, month=6)
    assert month.label == '2024-06'
    assert month.key == (2024, 6)
    assert month.distribution_core == 0.25
    assert month.subsidy_distribution_savings == 0.35
    assert month.to_dict()['closed_at'] is None
