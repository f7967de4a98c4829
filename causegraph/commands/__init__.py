"""Command implementations for the causegraph CLI."""
