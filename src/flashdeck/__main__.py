"""Allow ``python -m flashdeck``."""

import sys

from .main import main

sys.exit(main())
