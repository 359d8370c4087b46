"""Scheduled entry points (cache sweep, periodic dispatch)."""
