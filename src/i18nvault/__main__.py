"""Entry point for ``python -m i18nvault``."""

import sys

from i18nvault.cli import main

sys.exit(main())
