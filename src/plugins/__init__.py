"""Plugin registry and file loader."""
