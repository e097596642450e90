"""Data-access layer: SQL statements and the transaction boundary."""
