"""Streamlit entry script; sibling ``pages/`` become sidebar pages."""

from __future__ import annotations

import sys
from pathlib import Path

# Streamlit runs this file as a script, so the package may not be importable yet
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from household_planner.dashboard import main

main()
