"""Boundary adapters: database persistence and the external worker endpoint."""
