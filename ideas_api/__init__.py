"""Ideas platform API."""
