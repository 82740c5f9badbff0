"""Pydantic wire schemas: what the API accepts and returns."""
