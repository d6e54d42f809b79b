"""Reader engagement: claps, comments, bookmarks and read tracking."""
