"""Allow ``python -m knowledge_hub.cli`` execution."""

from knowledge_hub.cli.ingest import main

main()
