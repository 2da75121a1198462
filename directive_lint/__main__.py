"""Allow ``python -m directive_lint``."""

import sys

from directive_lint.main import main

sys.exit(main())
