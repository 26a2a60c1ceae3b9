"""Entry point for ``python -m dnsdist_plugin``."""

import sys

from .main import main

if __name__ == "__main__":
    sys.exit(main())
