"""Run the service controller from a source checkout."""

import sys

from servicectl.cli import main

if __name__ == "__main__":
    sys.exit(main())
