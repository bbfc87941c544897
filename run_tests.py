#!/usr/bin/env python3
"""
Test runner for LinkShrink.

    python run_tests.py                 # whole suite
    python run_tests.py -k analytics    # extra args go straight to pytest
"""

import os
import subprocess
import sys


def run_tests(extra_args):
    os.chdir(os.path.dirname(os.path.abspath(__file__)))
    
    command = [sys.executable, "-m", "pytest", "tests/", "-v", "--tb=short", *extra_args]
    print("🧪 " + " ".join(command[2:]))
    
    try:
        subprocess.run(command, check=True)
    except subprocess.CalledProcessError as e:
        print(f"\n❌ Tests failed with exit code {e.returncode}")
        return e.returncode
    except FileNotFoundError:
        print("❌ Python interpreter not found")
        return 1
    
    print("\n✅ All tests passed!")
    return 0


if __name__ == "__main__":
    sys.exit(run_tests(sys.argv[1:]))
