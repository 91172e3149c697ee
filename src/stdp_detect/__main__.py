"""Allow ``python -m stdp_detect``."""

import sys

from stdp_detect.cli import main

sys.exit(main())
