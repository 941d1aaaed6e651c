"""Personal notes service backend."""
