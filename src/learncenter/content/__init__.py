"""Bundled page content."""
