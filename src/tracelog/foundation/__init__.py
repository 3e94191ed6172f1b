"""Foundation: configuration and error types."""
