"""Top-level package for the shared household budget engine.

The primary modules are:

* ``models`` – row types for sectors, categories, budgets and transactions
* ``spending`` – spend per category and per-period summary building
* ``aggregation`` – hierarchy totals and ordered presentation rows
* ``propagation`` – carrying budgets from one month into another
* ``projection`` – linear yearly spend projection
* ``visualization`` – Plotly figures
* ``dashboard`` – a Streamlit app that ties everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run shared_budget/dashboard.py
```
"""

from . import aggregation  # noqa: F401  # re-exported for convenience
from . import hierarchy  # noqa: F401  # re-exported for convenience
from . import projection  # noqa: F401  # re-exported for convenience
from . import propagation  # noqa: F401  # re-exported for convenience
from . import spending  # noqa: F401  # re-exported for convenience
from . import thresholds  # noqa: F401  # re-exported for convenience
from . import visualization  # noqa: F401  # re-exported for convenience
# Streamlit may not be installed in all environments (e.g. during unit
# testing), in which case ``dashboard`` is None.
try:
    from . import dashboard  # type: ignore  # noqa: F401
except ModuleNotFoundError:
    dashboard = None  # type: ignore


__all__ = [
    "aggregation",
    "hierarchy",
    "projection",
    "propagation",
    "spending",
    "thresholds",
    "visualization",
    "dashboard",
]
