# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
JSON Schema for NDJSON event records, and whole-file validation.

Sources use validate_event_record() to decide whether a decoded line can
become a TraceEvent; the validate subcommand uses validate_event_file() to
report every problem in a recorded file.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import jsonschema

from etrace.events.compression import detect_compression, open_event_file

SCALAR_TYPES = ["string", "integer", "number", "boolean", "null"]

EVENT_RECORD_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["event", "pid", "tid"],
    "properties": {
        "event": {"type": "string", "minLength": 1},
        "provider": {"type": "string"},
        "keywords": {"type": "integer", "minimum": 0},
        "process": {"type": "string"},
        "pid": {"type": "integer"},
        "tid": {"type": "integer"},
        "timestamp": {"type": ["string", "number"]},
        "payload": {
            "type": "object",
            "additionalProperties": {"type": SCALAR_TYPES},
        },
        "payload_names": {
            "type": "array",
            "items": {"type": "string"},
        },
    },
}

_validator = jsonschema.Draft7Validator(EVENT_RECORD_SCHEMA)


def record_errors(record: Any) -> List[str]:
    """
    Return schema violations for one decoded record.

    Args:
        record: Decoded JSON value

    Returns:
        List of human-readable messages (empty if the record is valid)
    """
    messages = []
    for error in _validator.iter_errors(record):
        field_path = ".".join(str(p) for p in error.path)
        if field_path:
            messages.append(f"Schema error at '{field_path}': {error.message}")
        else:
            messages.append(f"Schema error: {error.message}")
    return messages


def validate_event_record(record: Any) -> bool:
    """Return True if record conforms to the event record schema."""
    return _validator.is_valid(record)


def validate_event_file(filepath: Path, max_errors: int = 10) -> Dict[str, Any]:
    """
    Validate every record of a recorded event file.

    Args:
        filepath: Path to the NDJSON event file (plain or Zstd)
        max_errors: Stop collecting errors after this many

    Returns:
        Dictionary containing:
            - valid: bool - Whether every record passed
            - record_count: int - Number of valid records
            - compression: str - "zstd" or "none"
            - file_size: int - File size in bytes
            - errors: List[str] - Error messages (empty if valid)

    Raises:
        FileNotFoundError: If file does not exist
    """
    filepath = Path(filepath)
    result: Dict[str, Any] = {
        "valid": False,
        "record_count": 0,
        "compression": detect_compression(filepath),
        "file_size": filepath.stat().st_size,
        "errors": [],
    }
    errors: List[str] = result["errors"]

    with open_event_file(filepath) as f:
        for line_num, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue

            try:
                line.encode("utf-8")
                record = json.loads(line)
            except UnicodeEncodeError:
                errors.append(f"Line {line_num}: invalid UTF-8")
            except json.JSONDecodeError as e:
                errors.append(f"Line {line_num}: JSON decode error - {e.msg}")
            else:
                problems = record_errors(record)
                if problems:
                    # First 3 problems per record
                    errors.extend(f"Line {line_num}: {p}" for p in problems[:3])
                else:
                    result["record_count"] += 1

            if len(errors) >= max_errors:
                errors.append(f"... (showing first {max_errors} errors)")
                break

    if not errors and result["record_count"] == 0:
        errors.append("No event records found in file")

    result["valid"] = not errors
    return result
