"""Domain layer - scheduling logic with no UI or transport dependencies."""
