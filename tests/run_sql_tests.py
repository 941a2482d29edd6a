#!/usr/bin/env python
# tests/run_sql_tests.py
import unittest
import sys
from pathlib import Path

# Add project root and src to sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))
import setup_path

SUITES = {
    "security": "unit/security",
    "config": "unit/config",
    "database": "unit/database",
    "web": "unit/web_interface",
    "api": "integration",
}


def run_sql_tests(names=None):
    """Run the selected test suites, or all of them."""
    test_suite = unittest.TestSuite()

    for name in names or SUITES:
        if name not in SUITES:
            print(f"Unknown suite '{name}', expected one of: {', '.join(SUITES)}")
            return 2

        directory = Path(__file__).parent / SUITES[name]
        print(f"Adding {name} tests from {directory}...")
        test_suite.addTests(unittest.defaultTestLoader.discover(
            start_dir=str(directory),
            pattern="test_*.py",
            top_level_dir=str(directory)
        ))

    test_runner = unittest.TextTestRunner(verbosity=2)
    result = test_runner.run(test_suite)

    # Print summary
    print("\nSQL Gateway Test Summary:")
    print(f"  Ran {result.testsRun} tests")
    print(f"  Failures: {len(result.failures)}")
    print(f"  Errors: {len(result.errors)}")
    print(f"  Skipped: {len(result.skipped)}")

    return 0 if result.wasSuccessful() else 1


if __name__ == "__main__":
    sys.exit(run_sql_tests(sys.argv[1:]))
