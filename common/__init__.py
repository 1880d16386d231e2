"""Shared data model, geo helpers, logging and small utilities."""
