"""Allow ``python -m exam_toolkit``."""

import sys

from exam_toolkit.cli import main

sys.exit(main())
