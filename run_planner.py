#!/usr/bin/env python3
"""Start the Goal Planner Streamlit app.

Extra arguments are handed to ``streamlit run``, e.g.::

    python run_planner.py --server.port 8600
"""

import os
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.resolve()
APP_DIR = PROJECT_ROOT / "household_planner"


def main(argv=None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(PROJECT_ROOT), env.get("PYTHONPATH")]))
    # pages/ is discovered next to the entry script
    return subprocess.call(
        [sys.executable, "-m", "streamlit", "run", "Home.py", *args],
        cwd=APP_DIR,
        env=env,
    )


if __name__ == "__main__":
    raise SystemExit(main())
