"""Text/JSON output helpers.

The CLI renders ServiceResult for humans (Rich text) or machines
(``--json``). The formatter layer adapts ServiceResult to the requested
output mode.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.text import Text

from notectl.output.console import create_console, get_output

if TYPE_CHECKING:
    from notectl.services.result import ServiceResult


def _format_data_human(data: dict[str, Any]) -> list[str]:
    """Format result data as indented key-value pairs."""
    lines: list[str] = []
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            lines.append(f"  {key}: {_json.dumps(value, separators=(',', ':'), default=str)}")
        else:
            lines.append(f"  {key}: {value}")
    return lines


def format_result(result: ServiceResult, *, json_output: bool = False, quiet: bool = False) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        json_output: If True, return JSON; otherwise return human-readable text.
        quiet: Only print the status line for human output.
    """
    if json_output:
        return result.model_dump_json(indent=2)

    console = create_console()
    if result.ok:
        line = Text("OK", style="note.ok")
        line.append(f": {result.op}")
        console.print(line)
        if result.data and not quiet:
            for data_line in _format_data_human(result.data):
                console.print(Text(data_line))
    else:
        error_msg = result.error.message if result.error else "Unknown error"
        line = Text("ERROR", style="note.error")
        line.append(f": {result.op}: {error_msg}")
        console.print(line)
    return get_output(console).rstrip("\n")
