"""Paragraph-level full-text search over public-domain novels."""
