"""Record validation rules usable as pipeline filters."""
