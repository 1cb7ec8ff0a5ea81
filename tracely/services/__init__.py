"""Read-side services over persisted aggregates."""
