"""HTTP blueprints for the storefront API."""
