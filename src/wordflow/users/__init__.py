"""User profiles and aggregate counts."""
