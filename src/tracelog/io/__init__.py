"""I/O integrations: outbound HTTP logging."""
