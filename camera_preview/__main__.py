"""Allow ``python -m camera_preview`` to run a preview from the command line."""

from __future__ import annotations

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
