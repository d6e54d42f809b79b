"""Per-user dashboard."""
