from __future__ import annotations

import runpy
import sys
from pathlib import Path

SCRIPTS = Path(__file__).resolve().parents[1] / "scripts"


def test_mem_profile_with_zero_ticks(monkeypatch) -> None:
    ns = runpy.run_path(str(SCRIPTS / "mem_profile.py"), run_name="mem_profile")
    monkeypatch.setattr(sys, "argv", ["mem_profile.py", "--name", "spiral", "--ticks", "0"])
    ns["main"]()


def test_mem_profile_short_run(monkeypatch) -> None:
    ns = runpy.run_path(str(SCRIPTS / "mem_profile.py"), run_name="mem_profile")
    monkeypatch.setattr(sys, "argv", ["mem_profile.py", "--name", "grid", "--ticks", "3"])
    ns["main"]()
