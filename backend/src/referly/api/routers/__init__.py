"""Route groups mounted by create_app."""
