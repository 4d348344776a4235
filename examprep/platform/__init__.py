"""Cross-cutting platform concerns (errors)."""
