"""Article search and search history."""
