"""JSON-schema checks for tool-call arguments."""

from __future__ import annotations

import jsonschema

from narrator.tools.base import Tool, normalize_schema


def _describe(error: jsonschema.ValidationError) -> str:
    where = ".".join(str(p) for p in error.absolute_path)
    return f"{where}: {error.message}" if where else error.message


class ToolValidator:
    """
    Validates model-supplied arguments against each tool's ``parameters``.

    Every violation is reported, not just the first, so the model can fix
    all of them in one retry.
    """

    @staticmethod
    def validate(tool: Tool, arguments: dict) -> tuple[bool, str | None]:
        schema = normalize_schema(tool.parameters)
        validator = jsonschema.validators.validator_for(schema)(schema)
        errors = sorted(
            validator.iter_errors(arguments),
            key=lambda e: [str(p) for p in e.absolute_path],
        )
        if not errors:
            return True, None
        return False, "; ".join(_describe(e) for e in errors)
