#!/usr/bin/env python3
"""
Test runner for the cube atlas pipeline.

    python scripts/test_pipeline.py --type unit
"""

import sys
import subprocess
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
TEST_DIR = PROJECT_ROOT / "scripts" / "cube_atlas" / "tests"

# End-to-end tests that write atlases and drive the CLI
INTEGRATION_TESTS = ["test_cli_integration.py", "test_pipeline_integration.py"]


def build_command(test_type: str = "all", verbose: bool = False) -> list:
    """pytest invocation for the selected group of tests."""
    cmd = [sys.executable, "-m", "pytest"]
    if verbose:
        cmd.append("-v")

    if test_type == "integration":
        cmd.extend(str(TEST_DIR / name) for name in INTEGRATION_TESTS)
    else:
        cmd.append(str(TEST_DIR))
        if test_type == "unit":
            cmd.extend(f"--ignore={TEST_DIR / name}" for name in INTEGRATION_TESTS)

    return cmd


def run_tests(test_type: str = "all", verbose: bool = False) -> int:
    cmd = build_command(test_type, verbose)
    print(f"Running: {' '.join(cmd)}")

    try:
        return subprocess.run(cmd, cwd=PROJECT_ROOT).returncode
    except FileNotFoundError:
        print("Error: pytest not found. Install it with: pip install -e '.[test]'")
        return 1


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Run cube atlas tests")
    parser.add_argument("--type", choices=["all", "unit", "integration"], default="all",
                        help="Which tests to run")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    args = parser.parse_args()

    sys.exit(run_tests(args.type, args.verbose))
