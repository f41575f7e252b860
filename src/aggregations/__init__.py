"""Stateful aggregation over keyed record groups."""
