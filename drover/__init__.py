"""Drover: keep pull requests current and merge them once they are ready."""
