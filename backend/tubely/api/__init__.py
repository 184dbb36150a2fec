"""REST API layer for the Tubely backend, organized by version."""
