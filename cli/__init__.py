"""Command line interface for the omap load generator."""
