"""Video platform integrations."""
