"""Human-readable rendering of ledger results."""

from __future__ import annotations

import json
import sys
from enum import Enum
from typing import Any, Optional, TextIO

import yaml

RESULT_LABEL = "[Return]"


class OutputFormat(Enum):
    """Output format options."""
    JSON = "json"
    YAML = "yaml"


def format_output(data: Any, fmt: OutputFormat = OutputFormat.JSON) -> str:
    """Format data for output."""
    if fmt == OutputFormat.YAML:
        # Through JSON first so non-JSON types are stringified the same way.
        plain = json.loads(json.dumps(data, default=str))
        return yaml.safe_dump(plain, default_flow_style=False, sort_keys=False).rstrip("\n")
    return json.dumps(data, indent=2, default=str)


def render(
    value: Optional[Any],
    stream: Optional[TextIO] = None,
    fmt: OutputFormat = OutputFormat.JSON,
) -> None:
    """Print a labelled, indented result. Absent values print nothing."""
    if value is None:
        return
    out = stream or sys.stdout
    print(RESULT_LABEL, file=out)
    print(format_output(value, fmt), file=out)
