"""Top-level package for the Bucket Planner.

A personal budgeting engine: each month's income is split into savings,
crypto, leisure, discretionary and buffer buckets, and the ledger of
movements is reconciled against those targets. The primary modules are:

* ``distribution`` – planned bucket targets from a month's income
* ``aggregation`` – per-category totals of ledger movements
* ``buckets`` – plan-versus-actual reconciliation per bucket
* ``suggestions`` – savings nudges derived from the reconciliation
* ``summary`` – secondary dashboard metrics
* ``db`` and ``lifecycle`` – SQLite storage and month orchestration
* ``dashboard`` – a Streamlit app that ties everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run bucket_planner/dashboard.py
```
"""

from .aggregation import aggregate_actuals
from .buckets import BucketSummary, build_buckets
from .distribution import DistributionResult, apply_distribution_to_month, compute_distribution
from .models import Account, AccountBalance, AppSettings, MonthConfig, Movement
from .suggestions import Suggestion, generate_suggestions

__all__ = [
    "Account",
    "AccountBalance",
    "AppSettings",
    "BucketSummary",
    "DistributionResult",
    "MonthConfig",
    "Movement",
    "Suggestion",
    "aggregate_actuals",
    "apply_distribution_to_month",
    "build_buckets",
    "compute_distribution",
    "generate_suggestions",
]
