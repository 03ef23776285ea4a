"""Allow ``python -m provider_loader``."""

import sys

from .main import main

sys.exit(main())
