"""Allow ``python -m convex_typegen``."""

import sys

from convex_typegen.cli import main

sys.exit(main())
