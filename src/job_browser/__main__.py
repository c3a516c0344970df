"""Allow running as ``python -m job_browser``."""

import sys

from job_browser.cli import main

sys.exit(main())
