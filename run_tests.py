#!/usr/bin/env python3
"""
Run the Cellarwise test suite with coverage.

Usage:
    python run_tests.py                 # whole suite
    python run_tests.py -k selection    # extra arguments go to pytest
"""

import sys
from pathlib import Path

ROOT = Path(__file__).parent

# Importable without an editable install
sys.path.insert(0, str(ROOT / "src"))

import pytest

if __name__ == "__main__":
    sys.exit(pytest.main([
        str(ROOT / "tests"),
        "--tb=short",
        "--cov=cellarwise",
        "--cov-report=term-missing",
        *sys.argv[1:],
    ]))
