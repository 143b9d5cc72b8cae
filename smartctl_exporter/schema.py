from __future__ import annotations

from functools import lru_cache
from importlib import resources
import json
from typing import Any

from jsonschema import Draft202012Validator

SCAN_SCHEMA = "schemas/smartctl-scan.schema.json"


def load_schema(name: str = SCAN_SCHEMA) -> dict[str, Any]:
    schema_path = resources.files("smartctl_exporter").joinpath(name)
    return json.loads(schema_path.read_text(encoding="utf-8"))


@lru_cache(maxsize=None)
def get_validator(name: str = SCAN_SCHEMA) -> Draft202012Validator:
    return Draft202012Validator(schema=load_schema(name))


def validate_scan(payload: Any) -> list[str]:
    """Return validation error messages for a ``--scan-open`` document."""
    validator = get_validator()
    errors = sorted(validator.iter_errors(payload), key=lambda e: [str(part) for part in e.path])
    return [error.message for error in errors]
