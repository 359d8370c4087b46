"""Pydantic schemas for API contracts and in-process data exchange."""
