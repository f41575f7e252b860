"""Record sources.

This package holds lazy producers of records: in-memory, generator, and
file-backed sources plus composite wrappers that chain and bound them.
"""
