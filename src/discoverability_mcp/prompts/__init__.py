"""Prompt templates for discoverability analysis."""
