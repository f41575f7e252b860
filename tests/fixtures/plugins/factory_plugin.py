"""Fixture plugin exposed through a factory function."""

from __future__ import annotations


class TaggingPlugin:
    name = "tagging"
    version = "0.2.0"

    async def initialize(self) -> None:
        return None

    def transform(self, record: dict) -> dict:
        return {**record, "tagged": True}


def create_plugin() -> TaggingPlugin:
    return TaggingPlugin()
