"""In-memory stand-ins for upstream services."""
