"""Domain layer: graph model, connection rules, validation, copy/paste and history."""
