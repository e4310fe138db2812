"""Entry point for running krew-harness as a module.

Allows the package to be run as:
    python -m krew_harness
"""

import sys

from krew_harness.cli import main

if __name__ == "__main__":
    sys.exit(main())
