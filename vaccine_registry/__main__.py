"""Allow ``python -m vaccine_registry``."""

import sys

from vaccine_registry.cli import main

if __name__ == "__main__":
    sys.exit(main())
