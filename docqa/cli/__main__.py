"""Allow ``python -m docqa.cli`` execution."""

import sys

from docqa.cli.ingest import main

sys.exit(main())
