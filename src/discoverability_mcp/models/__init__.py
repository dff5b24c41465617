"""Pydantic models for product content and analysis results."""
