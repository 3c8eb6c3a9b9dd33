"""Domain layer: models, errors and services."""
