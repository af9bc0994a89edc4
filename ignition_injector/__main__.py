"""Allow ``python -m ignition_injector``."""

import sys

from ignition_injector.cli import main

if __name__ == "__main__":
    sys.exit(main())
