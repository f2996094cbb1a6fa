"""Flight Search database layer: models, sessions, change notification."""
