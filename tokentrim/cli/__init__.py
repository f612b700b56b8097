"""Command-line interface for tokentrim."""
