"""
Run the ColdApply service from a source checkout.

Usage:
    python scripts/run.py                 # startup cycle, then stay resident on the schedule
    python scripts/run.py --once          # startup cycle only
    python scripts/run.py --stats         # history / queue summary

Same as the installed `coldapply` command.
"""
from __future__ import annotations

import sys
from pathlib import Path

# Allow running from repo root without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from coldapply.cli import main

if __name__ == "__main__":
    main()
