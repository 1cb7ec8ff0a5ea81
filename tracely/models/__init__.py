"""Pydantic models for observations, scopes, aggregates and reports."""
