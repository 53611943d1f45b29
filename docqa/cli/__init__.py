"""Command-line tools for docqa."""
