"""Allow ``python -m provider_directory.cli`` execution."""

import sys

from provider_directory.cli.directory import main

sys.exit(main())
