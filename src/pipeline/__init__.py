"""Pipeline orchestrator and stage adapters."""
