#!/usr/bin/env python3
"""Direct launcher for the Shared Budget dashboard.

Runs Streamlit on shared_budget/dashboard.py with the project root on the
import path.
"""

import os
import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.resolve()
app_path = project_root / "shared_budget" / "dashboard.py"

if __name__ == "__main__":
    os.chdir(project_root)
    sys.path.insert(0, str(project_root))
    subprocess.run([
        sys.executable, "-m", "streamlit", "run",
        str(app_path),
    ])
