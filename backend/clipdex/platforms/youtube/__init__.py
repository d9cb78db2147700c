"""YouTube Data API integration."""
