"""Top-level package for the household goal planner.

The primary modules are:

* ``feasibility`` – allocates monthly savings capacity across goals
* ``strategy`` – inflation target, contribution and asset mix per goal
* ``growth`` – savings capacity growth projection
* ``currency`` – conversions over manually entered exchange rates
* ``dashboard`` – a Streamlit app that ties everything together

To run the dashboard from the command line you can execute:

```bash
python run_planner.py
```
"""

from .currency import resolve_rate  # noqa: F401  # re-exported for convenience
from .feasibility import check_feasibility  # noqa: F401  # re-exported for convenience
from .growth import project_growth_multiplier  # noqa: F401  # re-exported for convenience
from .strategy import calculate_strategy  # noqa: F401  # re-exported for convenience

__all__ = [
    "calculate_strategy",
    "check_feasibility",
    "project_growth_multiplier",
    "resolve_rate",
]
