"""Entry point for ``python -m netprobe``."""

import sys

from netprobe.cli import main

if __name__ == "__main__":
    sys.exit(main())
