"""
Utility functions for docstore operations.
"""

import json
import sys
from typing import Any

import click

from .constants import MAX_DOCUMENT_ID_BYTES


def output_json(data: dict[str, Any], quiet: bool = False) -> None:
    """
    Output JSON to stdout.

    Args:
        data: Data to output as JSON
        quiet: If True, suppress output
    """
    if not quiet:
        print(json.dumps(data))


def output_text(message: str, quiet: bool = False) -> None:
    """
    Output text to stdout.

    Args:
        message: Message to output
        quiet: If True, suppress output
    """
    if not quiet:
        print(message)


def error_json(error: str, solution: str, exit_code: int) -> dict[str, Any]:
    """
    Format error as JSON.

    Args:
        error: Error message
        solution: Solution suggestion
        exit_code: Exit code

    Returns:
        Error dictionary
    """
    return {"error": error, "solution": solution, "exit_code": exit_code}


def error_text(error: str, solution: str) -> str:
    """Format error as human-readable text."""
    return f"❌ Error: {error}\n\n💡 Solution: {solution}"


def output_error(error: str, solution: str, exit_code: int, text_format: bool = False) -> None:
    """
    Output error message and exit.

    Args:
        error: Error message
        solution: Solution suggestion
        exit_code: Exit code
        text_format: If True, output as text; otherwise JSON
    """
    if text_format:
        sys.stderr.write(error_text(error, solution) + "\n")
    else:
        sys.stderr.write(json.dumps(error_json(error, solution, exit_code)) + "\n")
    sys.exit(exit_code)


def parse_json_object(raw: str) -> dict[str, Any]:
    """
    Parse a JSON object given on the command line.

    Raises:
        ValueError: If raw is not valid JSON or not an object
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}")
    if not isinstance(data, dict):
        raise ValueError("Document data must be a JSON object")
    return data


def validate_collection_path(path: str) -> bool:
    """
    Validate a collection path such as 'cities' or 'cities/SF/landmarks'.

    Args:
        path: Slash-separated collection path

    Returns:
        True if valid

    Raises:
        ValueError: If path is invalid
    """
    if not path:
        raise ValueError("Collection path cannot be empty")
    segments = path.split("/")
    if len(segments) % 2 == 0:
        raise ValueError(
            f"Collection path '{path}' must have an odd number of segments "
            "(collection[/document/collection...])"
        )
    for segment in segments:
        _validate_segment(segment)
    return True


def validate_document_id(document_id: str) -> bool:
    """
    Validate a document id.

    Raises:
        ValueError: If document id is invalid
    """
    if not document_id:
        raise ValueError("Document id cannot be empty")
    if "/" in document_id:
        raise ValueError("Document id cannot contain '/'")
    if len(document_id.encode("utf-8")) > MAX_DOCUMENT_ID_BYTES:
        raise ValueError(f"Document id cannot exceed {MAX_DOCUMENT_ID_BYTES} bytes")
    _validate_segment(document_id)
    return True


def validate_page_size(page_size: int) -> bool:
    """
    Validate a purge page size.

    Raises:
        ValueError: If page size is not a positive integer
    """
    if isinstance(page_size, bool) or not isinstance(page_size, int):
        raise ValueError(f"Page size must be an integer, got {page_size!r}")
    if page_size < 1:
        raise ValueError(f"Page size must be at least 1, got {page_size}")
    return True


def _validate_segment(segment: str) -> None:
    if not segment:
        raise ValueError("Path segments cannot be empty")
    if segment in (".", ".."):
        raise ValueError(f"Path segment cannot be '{segment}'")
    if segment.startswith("__") and segment.endswith("__"):
        raise ValueError(f"Path segment '{segment}' is reserved")


def exit_with_error(
    ctx: click.Context, text: bool, error: str, solution: str, exit_code: int
) -> None:
    """
    Report an error on stderr and exit the click context.

    Args:
        ctx: Click context of the running command
        text: If True, output as text; otherwise JSON
        error: Error message
        solution: Solution suggestion
        exit_code: Exit code
    """
    if text:
        click.echo(error_text(error, solution), err=True)
    else:
        click.echo(json.dumps(error_json(error, solution, exit_code)), err=True)
    ctx.exit(exit_code)
