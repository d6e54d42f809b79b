"""WordFlow blogging platform API."""
