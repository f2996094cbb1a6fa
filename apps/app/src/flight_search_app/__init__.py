"""Flight Search application: store facade, view model and CLI."""
