"""Allow ``python -m src.cli`` to run the index CLI."""

from src.cli.ingest import main

main()
