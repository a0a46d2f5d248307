"""Allow ``python -m ragdesk.cli``."""

from ragdesk.cli.ingest import main

main()
