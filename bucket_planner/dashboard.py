"""Streamlit page for the bucket planner.

Shows the current month's buckets, the planned distribution and the
savings nudges, and offers a quick form for logging an expense. All
numbers come from :func:`bucket_planner.lifecycle.month_snapshot`.

To run the dashboard from the command line::

    streamlit run bucket_planner/dashboard.py

or use ``run_dashboard.py`` at the project root.
"""

from __future__ import annotations

import os
import sys
from datetime import date, datetime

import streamlit as st

if __package__:
    from . import lifecycle
    from . import visualization as viz
    from .config import CURRENCY, configure_logging
    from .db import open_repository
    from .exceptions import BucketPlannerError
    from .models import AccountType, Movement
    from .money import format_currency
    from .summary import bucket_frame
    from .taxonomy import EXPENSE_CATEGORY_LABELS, MovementType
else:
    # Executed by ``streamlit run``: make the package importable.
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from bucket_planner import lifecycle  # type: ignore
    from bucket_planner import visualization as viz  # type: ignore
    from bucket_planner.config import CURRENCY, configure_logging  # type: ignore
    from bucket_planner.db import open_repository  # type: ignore
    from bucket_planner.exceptions import BucketPlannerError  # type: ignore
    from bucket_planner.models import AccountType, Movement  # type: ignore
    from bucket_planner.money import format_currency  # type: ignore
    from bucket_planner.summary import bucket_frame  # type: ignore
    from bucket_planner.taxonomy import EXPENSE_CATEGORY_LABELS, MovementType  # type: ignore

_TONE_RENDERERS = {
    'warning': st.warning,
    'info': st.info,
    'success': st.success,
}


def get_repository():
    if 'repository' not in st.session_state:
        configure_logging()
        repo = open_repository()
        lifecycle.initialize_default_data(repo)
        st.session_state.repository = repo
    return st.session_state.repository


def render_quick_expense(repo, month) -> None:
    accounts = [a for a in repo.list_accounts() if a.is_active]
    if not accounts:
        st.info("No accounts configured.")
        return
    default_index = next(
        (i for i, a in enumerate(accounts) if a.type == AccountType.CURRENT), 0
    )
    with st.form("quick_expense", clear_on_submit=True):
        st.subheader("Quick expense")
        amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
        category = st.selectbox(
            "Category",
            options=list(EXPENSE_CATEGORY_LABELS),
            format_func=EXPENSE_CATEGORY_LABELS.get,
        )
        account = st.selectbox(
            "Account", options=accounts, index=default_index, format_func=lambda a: a.name
        )
        when = st.date_input("Date", value=date.today())
        note = st.text_input("Note")
        submitted = st.form_submit_button("Add expense", disabled=month.is_closed)
    if not submitted:
        return
    try:
        movement = Movement.create(
            MovementType.EXPENSE, amount, category, on=when, account_from_id=account.id, note=note
        )
        lifecycle.add_movement(repo, movement)
    except BucketPlannerError as exc:
        st.error(str(exc))
        return
    st.success(f"Added {format_currency(movement.amount, CURRENCY)} to {EXPENSE_CATEGORY_LABELS[category]}.")
    st.rerun()


def main() -> None:
    """Entry point for the Streamlit app."""
    st.set_page_config(page_title="Bucket Planner", layout="wide")
    st.title("Bucket Planner")

    repo = get_repository()
    now = datetime.now()
    month = lifecycle.ensure_month(repo, now.year, now.month)

    months = repo.list_months()
    selected = st.sidebar.selectbox(
        "Month",
        options=months,
        index=next((i for i, m in enumerate(months) if m.id == month.id), 0),
        format_func=lambda m: f"{m.label}{' (closed)' if m.is_closed else ''}",
    )
    month = selected or month
    snapshot = lifecycle.month_snapshot(repo, month, now=now)

    overview = snapshot.overview
    cols = st.columns(4)
    cols[0].metric("Planned income", format_currency(overview['planned_income'], CURRENCY))
    cols[1].metric("Available cash", format_currency(snapshot.distribution.available_cash, CURRENCY))
    cols[2].metric("Cash flow", format_currency(overview['cash_flow'], CURRENCY))
    cols[3].metric("Savings progress", f"{overview['savings_progress']:.0f}%")

    for suggestion in snapshot.suggestions:
        _TONE_RENDERERS.get(suggestion.tone.value, st.info)(suggestion.message)

    st.subheader("Buckets")
    st.dataframe(bucket_frame(snapshot.buckets), use_container_width=True, hide_index=True)
    st.plotly_chart(viz.bucket_progress_chart(snapshot.buckets), use_container_width=True)
    st.plotly_chart(viz.distribution_chart(snapshot.distribution), use_container_width=True)

    st.subheader("Movements")
    st.dataframe(repo.movements_frame(month.year, month.month), use_container_width=True, hide_index=True)

    render_quick_expense(repo, month)

    st.sidebar.header("Month")
    settings = lifecycle.load_settings(repo)
    if month.is_closed:
        if st.sidebar.button("Reopen month"):
            lifecycle.reopen_month(repo, month)
            st.rerun()
    else:
        if st.sidebar.button("Record payday"):
            lifecycle.record_payday(repo, month, settings)
            st.rerun()
        if st.sidebar.button("Close month"):
            lifecycle.close_month(repo, month, settings)
            st.rerun()


if __name__ == "__main__":
    main()
