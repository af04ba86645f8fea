"""HR Suite backend.

- claims: expense claims and their multi-level approval workflows
- core: database pool, base repository, logging and API helpers
"""
