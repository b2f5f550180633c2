"""Domain layer: entities, configuration and exceptions."""
