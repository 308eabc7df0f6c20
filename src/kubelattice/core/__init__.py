"""Core models and interfaces."""
