"""Allow ``python -m oidstore``."""

import sys

from oidstore.cli import main

sys.exit(main())
