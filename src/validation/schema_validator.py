"""Pydantic-backed schema validation rule."""

from __future__ import annotations

from typing import Type

from pydantic import BaseModel, ValidationError as PydanticValidationError

from core.types import Record


class SchemaValidator:
    """Rule passing records that validate against a pydantic model.

    The last failure's field errors are kept in ``last_errors`` for
    diagnostics.
    """

    def __init__(
        self,
        name: str,
        model: Type[BaseModel],
        message: str = "Schema validation failed",
    ) -> None:
        self.name = name
        self.message = message
        self._model = model
        self.last_errors: list[str] = []

    def validate(self, record: Record) -> bool:
        try:
            self._model.model_validate(record)
        except PydanticValidationError as error:
            self.last_errors = [
                f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
                for item in error.errors()
            ]
            return False
        self.last_errors = []
        return True

    def __call__(self, record: Record) -> bool:
        return self.validate(record)
