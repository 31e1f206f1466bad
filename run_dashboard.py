#!/usr/bin/env python3
"""Direct launcher for the Bucket Planner dashboard."""

import sys
import subprocess
from pathlib import Path

project_root = Path(__file__).parent.resolve()
dashboard_path = project_root / "bucket_planner" / "dashboard.py"

if __name__ == "__main__":
    subprocess.run([
        sys.executable, "-m", "streamlit", "run",
        str(dashboard_path),
    ], cwd=str(project_root))
