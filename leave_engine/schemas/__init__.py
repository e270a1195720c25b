"""Pydantic schemas exchanged with the engine's callers."""
