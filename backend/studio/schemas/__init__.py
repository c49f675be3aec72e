"""Pydantic schemas for the public API."""
