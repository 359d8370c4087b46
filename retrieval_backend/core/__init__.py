"""Domain logic: job state rules, cache key normalization, context assembly."""
