"""Concrete adapters for docqa's provider interfaces."""
