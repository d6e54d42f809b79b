"""Article authoring, publishing and revision history."""
