"""Domain services used by the API blueprints."""
