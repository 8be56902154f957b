"""Pytest configuration for the movets test suite."""

import sys
from pathlib import Path

# Repository root for the movets package, tests dir for the IR builders
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))
