"""Command line interface for marknote."""
