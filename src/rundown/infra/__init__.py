"""Infrastructure layer: settings, persistence, logging and error types."""
