"""Game top-up storefront: REST API and checkout client."""

__version__ = "1.0.0"
