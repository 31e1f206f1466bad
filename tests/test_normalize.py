from datetime import datetime

from bucket_planner.normalize import normalize_month, normalize_month_or_none, normalize_settings


def test_legacy_month_record_is_migrated():
    month = normalize_month({
        'id': 'old',
        'year': 2023,
        'month': 5,
        'incomeBase': 1000,
        'fixedExpenses': 450,
        'foodPlanned': 120,
        'distributionShit': 0.2,
        'isClosed': True,
        'closedAt': '2023-05-31T21:00:00',
    })
    assert month.income_base == 1000.0
    assert month.planned_rent == 450.0
    assert month.actual_fixed_expenses == 450.0
    assert month.planned_food == 120.0
    assert month.actual_food_expenses == 120.0
    assert month.distribution_shit == 0.2
    assert month.distribution_core == 0.25
    assert month.is_closed is True
    assert month.closed_at == datetime(2023, 5, 31, 21, 0)


def test_missing_actuals_fall_back_to_planned_figures():
    month = normalize_month({
        'id': 'm', 'year': 2024, 'month': 2,
        'planned_rent': 400, 'planned_utilities': 50, 'planned_food': 90,
    })
    assert month.actual_fixed_expenses == 450.0
    assert month.actual_food_expenses == 90.0


def test_entered_actual_zero_is_kept():
    month = normalize_month({
        'id': 'm', 'year': 2024, 'month': 2,
        'planned_rent': 400, 'actual_fixed_expenses': 0,
    })
    assert month.actual_fixed_expenses == 0.0


def test_normalising_canonical_record_is_identity():
    month = normalize_month({'id': 'm', 'year': 2024, 'month': 6, 'income_base': 1168})
    assert normalize_month(month) is month
    assert normalize_month(month.to_dict()) == month


def test_bad_values_default_quietly():
    month = normalize_month({
        'year': '2024', 'month': '7', 'income_base': 'abc',
        'is_closed': 'false', 'closed_at': '2024-07-31T10:00:00',
    })
    assert month.id
    assert (month.year, month.month) == (2024, 7)
    assert month.income_base == 0.0
    assert month.is_closed is False
    assert month.closed_at is None


def test_normalize_month_or_none():
    assert normalize_month_or_none(None) is None
    assert normalize_month_or_none({'id': 'x', 'year': 2024, 'month': 1}).id == 'x'


def test_normalize_settings_flattens_planned_mapping():
    settings = normalize_settings({
        'monthlyIncomeBase': 1200,
        'planned': {'rent': 480, 'food': 150},
        'paydayDayOfMonth': '25',
    })
    assert settings.id == 'default'
    assert settings.base_currency == 'EUR'
    assert settings.monthly_income_base == 1200.0
    assert settings.planned_rent == 480.0
    assert settings.planned_food == 150.0
    assert settings.payday_day_of_month == 25
    assert settings.distribution_buffer == 0.15
