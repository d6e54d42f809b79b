"""Per-article analytics: counters written by handlers, reports read by authors."""
