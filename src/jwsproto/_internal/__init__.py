"""Private jwsproto code, not part of the public API."""
