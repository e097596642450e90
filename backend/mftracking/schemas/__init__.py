"""Pydantic schemas forming the HTTP API contract."""
