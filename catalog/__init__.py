"""Apple Music catalog access: token scraping, caching and API calls."""
