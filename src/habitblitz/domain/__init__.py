"""Domain layer: repository contracts the engine depends on."""
