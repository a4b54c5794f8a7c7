"""Record models, typed keys and the store error taxonomy."""
