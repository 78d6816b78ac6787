"""
SQLite persistence for Modward.

- ``db_connection``: the shared connection (``read()`` / ``transaction()``)
- ``database``: startup and shutdown, schema creation
"""
