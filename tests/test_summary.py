from datetime import date

from bucket_planner.buckets import EMPTY_BUCKET_SUMMARY, BucketSummary, GoalBucket
from bucket_planner.models import MonthConfig, Movement
from bucket_planner.summary import (
    BUCKET_FRAME_COLUMNS,
    bucket_frame,
    cash_flow,
    crypto_share,
    essential_share,
    fixed_vs_variable,
    fun_share,
    month_overview,
    planned_available,
    planned_expenses,
    planned_income,
    planned_income_total,
    planned_outflows,
    planned_transfers,
    savings_progress,
    sum_record,
)


def _month(**overrides):
    values = dict(
        id='m-2024-03',
        year=2024,
        month=3,
        income_base=1000,
        income_meal_card=100,
        planned_rent=400,
        planned_food=100,
        planned_savings=200,
    )
    values.update(overrides)
    return MonthConfig(**values)


def _movements():
    return [
        Movement.create('income', 1000, 'salary', on=date(2024, 3, 1), account_to_id='current'),
        Movement.create('expense', 300, 'rent', on=date(2024, 3, 1), account_from_id='current'),
        Movement.create('expense', 100, 'food', on=date(2024, 3, 2), account_from_id='meal'),
        Movement.create('expense', 50, 'leisure', on=date(2024, 3, 3), account_from_id='current'),
        Movement.create('expense', 20, 'subscriptions', on=date(2024, 3, 3), account_from_id='current'),
        Movement.create('transfer', 50, 'savings', on=date(2024, 3, 4),
                        account_from_id='current', account_to_id='savings'),
        Movement.create('transfer', 100, 'crypto_core', on=date(2024, 3, 4),
                        account_from_id='current', account_to_id='core'),
    ]


def test_planned_maps_are_complete():
    income = planned_income(_month(subsidy_applied=True, subsidy_amount=500))
    assert income == {
        'salary': 1000.0, 'subsidy': 500.0, 'meal_card': 100.0,
        'credit_card': 0.0, 'extraordinary': 0.0,
    }
    assert planned_income(_month(subsidy_amount=500))['subsidy'] == 0.0
    assert planned_expenses(_month())['rent'] == 400.0
    assert len(planned_expenses(_month())) == 9
    assert planned_transfers(_month()) == {'savings': 200.0, 'crypto_core': 0.0, 'crypto_shit': 0.0, 'buffer': 0.0}


def test_planned_totals():
    assert sum_record({'a': 1.1, 'b': 2.2}) == 3.3
    assert planned_income_total(_month()) == 1100.0
    assert planned_outflows(_month()) == 700.0
    assert planned_available(_month()) == 600.0


def test_cash_flow_ignores_transfers():
    assert cash_flow(_movements()) == 530.0


def test_savings_progress():
    assert savings_progress(_month(), _movements()) == 25.0
    assert savings_progress(_month(planned_savings=0), _movements()) == 0.0


def test_group_shares_use_actual_income():
    assert essential_share(_month(), _movements()) == 40.0
    assert fun_share(_month(), _movements()) == 5.0
    assert crypto_share(_month(), _movements()) == 10.0


def test_group_shares_fall_back_to_planned_income():
    expenses_only = [m for m in _movements() if m.type.value != 'income']
    # planned income total is 1100
    assert fun_share(_month(), expenses_only) == 4.55
    assert fun_share(_month(income_base=0, income_meal_card=0), expenses_only) == 0.0


def test_fixed_vs_variable():
    assert fixed_vs_variable(_movements()) == {'fixed': 320.0, 'variable': 150.0}


def test_month_overview():
    overview = month_overview(_month(), _movements())
    assert overview['label'] == '2024-03'
    assert overview['actual_income'] == 1000.0
    assert overview['actual_expenses'] == 470.0
    assert overview['actual_transfers'] == 150.0
    assert overview['cash_flow'] == 530.0
    assert overview['fixed_expenses'] == 320.0


def test_bucket_frame():
    summary = BucketSummary(savings=GoalBucket(plan=200, actual=50, remaining=150))
    df = bucket_frame(summary)
    assert list(df.columns) == BUCKET_FRAME_COLUMNS
    assert list(df['Bucket']) == [
        'Current account', 'Meal card', 'Leisure', 'Shit money', 'Savings', 'Crypto', 'Buffer',
    ]
    savings = df[df['Bucket'] == 'Savings'].iloc[0]
    assert savings['Progress %'] == 25.0
    assert savings['Remaining'] == 150.0
    assert (bucket_frame(EMPTY_BUCKET_SUMMARY)['Progress %'] == 0.0).all()
