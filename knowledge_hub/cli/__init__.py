"""CLI tools for the knowledge hub.

- ``python -m knowledge_hub.cli`` -- import text, upload documents, search,
  show statistics and issue bearer tokens against the local article store.
"""
