#!/usr/bin/env python3
"""Run the webcloner test suite.

Usage:
    python run_tests.py            # every test
    python run_tests.py --fast     # skip tests marked slow
    python run_tests.py --cov      # with a coverage report
"""

import sys

import pytest


def build_args(flags):
    """Translate runner flags into pytest arguments."""
    args = ["tests/", "--tb=short"]
    if "--fast" in flags:
        args += ["-m", "not slow"]
    if "--cov" in flags:
        args += ["--cov=webcloner", "--cov-report=term-missing"]
    return args


if __name__ == "__main__":
    sys.exit(pytest.main(build_args(sys.argv[1:])))
