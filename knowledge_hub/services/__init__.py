"""Business logic: summaries, section splitting, identifier allocation,
ingestion orchestration, article CRUD and search ranking."""
