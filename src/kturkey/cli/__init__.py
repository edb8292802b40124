"""CLI layer for kturkey application."""
