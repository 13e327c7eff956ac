"""Domain layer: entities, errors and reconciliation rules."""
