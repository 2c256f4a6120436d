"""HTML rendering for Org documents."""
