"""Infrastructure layer - transport setup."""
