"""File type classification, archive extraction and format readers."""
