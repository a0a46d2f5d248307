"""Server-side application services."""
