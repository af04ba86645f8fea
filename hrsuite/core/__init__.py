"""HR Suite core platform: shared repository base and utilities."""
