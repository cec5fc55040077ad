#!/usr/bin/env python3
"""Run formatters, linters and the test suite in one go.

Steps run in order and every step runs even if an earlier one fails:
black, isort, ruff, pylint, pytest. A summary is printed at the end and the
exit code is non-zero when any step failed.
"""

from pathlib import Path
import subprocess
import sys

ROOT = Path(__file__).parent
PACKAGES = ["app", "core", "infrastructure", "main.py"]

CHECKS: list[tuple[str, list[str]]] = [
    ("black", [sys.executable, "-m", "black", ".", "--check"]),
    ("isort", [sys.executable, "-m", "isort", ".", "--check-only"]),
    ("ruff", [sys.executable, "-m", "ruff", "check", "."]),
    ("pylint", [sys.executable, "-m", "pylint", *PACKAGES]),
    ("pytest", [sys.executable, "-m", "pytest", "-q"]),
]


def run_check(name: str, cmd: list[str]) -> tuple[bool, str]:
    """Run one check and return (passed, combined output)."""
    print(f"\n== {name}: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False, cwd=ROOT)
    except OSError as e:
        print(f"   could not start: {e}")
        return False, str(e)

    output = (result.stdout + result.stderr).strip()
    passed = result.returncode == 0
    print("   ok" if passed else f"   FAILED (exit {result.returncode})")
    return passed, output


def main() -> None:
    results = [(name, *run_check(name, cmd)) for name, cmd in CHECKS]

    print("\n== summary")
    for name, passed, _ in results:
        print(f"   {name:<8} {'pass' if passed else 'FAIL'}")

    failed = [(name, output) for name, passed, output in results if not passed]
    for name, output in failed:
        if output:
            print(f"\n-- {name} output --\n{output}")

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
