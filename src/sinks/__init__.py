"""Record sinks.

This package holds batched record consumers: in-memory, console, callback,
file-backed, and fan-out sinks.
"""
