"""
Two-Stage Input Validation

STAGE 1 - SCHEMA VALIDATION:
- Type checking and required fields
- Length and range rules declared on the pydantic input models

STAGE 2 - SEMANTIC VALIDATION:
- Rules that need application constants, e.g. permission paths must be
  manageable pages

Both stages raise InvalidInputError with a message of the form
"Invalid <entity> data: <issue>, <issue>" and keep the individual issues
for the audit log.

IMPORTANT: Validation NEVER silently fixes issues. Whitespace trimming
and decimal quantizing are normalization, not correction.
"""

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from bizflow.auth.permissions import unknown_paths
from bizflow.services.errors import InvalidInputError


ModelT = TypeVar("ModelT", bound=BaseModel)

VALUE_ERROR_PREFIX = "Value error, "


def _issue_from_error(error: dict) -> dict:
    field = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "Invalid value")

    if message.startswith(VALUE_ERROR_PREFIX):
        message = message[len(VALUE_ERROR_PREFIX):]
    elif field:
        # Built-in pydantic messages don't name the field
        message = f"{field}: {message}"

    return {"field": field or None, "message": message}


def _raise_invalid(entity: str, issues: list[dict]) -> None:
    messages = ", ".join(issue["message"] for issue in issues)
    raise InvalidInputError(f"Invalid {entity} data: {messages}", issues)


class InputValidator:
    """Validates action inputs before anything touches storage."""

    def parse(self, model: type[ModelT], entity: str, data: dict[str, Any]) -> ModelT:
        """
        Stage 1: build a pydantic input model.

        Args:
            model: Input model class
            entity: Label used in the error message ("user", "budget", ...)
            data: Raw field values

        Raises:
            InvalidInputError: With every issue pydantic reported
        """
        try:
            return model(**data)
        except ValidationError as e:
            issues = [_issue_from_error(error) for error in e.errors()]
            _raise_invalid(entity, issues)

    def check_permissions(self, paths: list[str]) -> None:
        """
        Stage 2: every requested path must be a manageable page.

        Raises:
            InvalidInputError: Listing the unknown paths
        """
        issues = [
            {"field": "permissions", "message": f"Unknown page path: {path}"}
            for path in unknown_paths(paths)
        ]
        if issues:
            _raise_invalid("permissions", issues)
