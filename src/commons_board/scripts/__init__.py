"""Operational scripts for Commons Board."""
