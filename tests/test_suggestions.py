from datetime import datetime

from bucket_planner.buckets import AccountBucket, BucketSummary, GoalBucket
from bucket_planner.models import MonthConfig
from bucket_planner.suggestions import Tone, evaluation_day, generate_suggestions

APRIL = MonthConfig(id='m-2024-04', year=2024, month=4)


def _ids(suggestions):
    return [s.id for s in suggestions]


def test_on_track_when_nothing_fires():
    suggestions = generate_suggestions(APRIL, BucketSummary(), now=datetime(2024, 4, 10))
    assert len(suggestions) == 1
    assert suggestions[0].id == 'on-track'
    assert suggestions[0].tone is Tone.SUCCESS


def test_leisure_brake_until_halfway():
    summary = BucketSummary(leisure=GoalBucket(plan=100, actual=80, remaining=20))
    assert _ids(generate_suggestions(APRIL, summary, now=datetime(2024, 4, 15))) == ['leisure-brake']
    assert _ids(generate_suggestions(APRIL, summary, now=datetime(2024, 4, 16))) == ['on-track']


def test_savings_catch_up_names_shortfall():
    summary = BucketSummary(savings=GoalBucket(plan=200, actual=50, remaining=150))
    suggestions = generate_suggestions(APRIL, summary, now=datetime(2024, 4, 20))
    assert _ids(suggestions) == ['savings-transfer']
    assert suggestions[0].tone is Tone.WARNING
    assert '€50.00' in suggestions[0].message


def test_savings_not_checked_before_day_twenty():
    summary = BucketSummary(savings=GoalBucket(plan=200, actual=0, remaining=200))
    assert _ids(generate_suggestions(APRIL, summary, now=datetime(2024, 4, 19))) == ['on-track']


def test_meal_card_rule_stops_on_last_day():
    summary = BucketSummary(meal_card=AccountBucket(plan=210, outflow=210, remaining_plan=0))
    assert 'meal-card-empty' in _ids(generate_suggestions(APRIL, summary, now=datetime(2024, 4, 29)))
    assert 'meal-card-empty' not in _ids(generate_suggestions(APRIL, summary, now=datetime(2024, 4, 30)))


def test_meal_card_rule_silent_without_a_card():
    summary = BucketSummary(meal_card=AccountBucket(plan=0, outflow=0, remaining_plan=0))
    assert _ids(generate_suggestions(APRIL, summary, now=datetime(2024, 4, 10))) == ['on-track']

    spent_unplanned = BucketSummary(meal_card=AccountBucket(plan=0, outflow=12, remaining_plan=-12))
    assert 'meal-card-empty' in _ids(generate_suggestions(APRIL, spent_unplanned, now=datetime(2024, 4, 10)))


def test_past_month_counts_as_elapsed():
    assert evaluation_day(APRIL, datetime(2024, 5, 3)) == 30
    assert evaluation_day(APRIL, datetime(2024, 4, 3)) == 3
    summary = BucketSummary(
        meal_card=AccountBucket(plan=210, outflow=210, remaining_plan=0),
        leisure=GoalBucket(plan=100, actual=90, remaining=10),
    )
    assert _ids(generate_suggestions(APRIL, summary, now=datetime(2024, 5, 3))) == ['on-track']


def test_risky_budget_done_is_informational():
    summary = BucketSummary(shit_money=GoalBucket(plan=50, actual=50, remaining=0))
    suggestions = generate_suggestions(APRIL, summary, now=datetime(2024, 4, 25))
    assert _ids(suggestions) == ['risky-budget-done']
    assert suggestions[0].tone is Tone.INFO


def test_all_matching_rules_fire():
    summary = BucketSummary(
        leisure=GoalBucket(plan=100, actual=100, remaining=0),
        savings=GoalBucket(plan=100, actual=0, remaining=100),
        meal_card=AccountBucket(plan=210, outflow=250, remaining_plan=-40),
        shit_money=GoalBucket(plan=50, actual=60, remaining=-10),
    )
    # February 2024 has 29 days, halfway is day 14
    february = MonthConfig(id='m-2024-02', year=2024, month=2)
    assert _ids(generate_suggestions(february, summary, now=datetime(2024, 2, 10))) == [
        'leisure-brake', 'meal-card-empty', 'risky-budget-done',
    ]
    assert _ids(generate_suggestions(february, summary, now=datetime(2024, 2, 20))) == [
        'savings-transfer', 'meal-card-empty', 'risky-budget-done',
    ]
