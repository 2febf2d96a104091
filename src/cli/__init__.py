"""Command-line tools for docchat.

- ``python -m src.cli.ingest``: ingest files, delete or list documents,
  show index statistics and rebuild the index.
"""
