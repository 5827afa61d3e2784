"""Load signature documents and entry modules from a URL, local file, or stdin.

This module handles all I/O for the CLI front end:

* :func:`load_signature` -- Load a signature document (JSON or YAML, with
  automatic format detection) into a plain dictionary.
* :func:`load_source_file` -- Read and parse a Python entry module into a
  :class:`~clisynth.models.SourceFile`.

After loading, the signature dict should be passed to
:func:`~clisynth.parser.extractor.extract_transform_result`.
"""

from __future__ import annotations

import ast
import json
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

from clisynth.exceptions import SignatureParseError
from clisynth.models import SourceFile

STDIN_SOURCE = "-"


def load_signature(source: str) -> dict[str, Any]:
    """Load a signature document from URL, file path, or stdin ('-').

    Supports JSON and YAML formats.
    Auto-detects format from content/extension.

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        The parsed document as a dictionary.

    Raises:
        SignatureParseError: If the source cannot be loaded or parsed.
    """
    if source == STDIN_SOURCE:
        return _parse_content(_read_stdin(), hint="stdin")
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source)
    else:
        return _load_from_file(source)


def _read_stdin() -> str:
    try:
        content = sys.stdin.read()
    except Exception as exc:
        raise SignatureParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SignatureParseError("No input received from stdin")
    return content


def _load_from_url(url: str) -> dict[str, Any]:
    """Fetch a signature document from *url*. Supports JSON and YAML responses."""
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SignatureParseError(
            f"HTTP {exc.response.status_code} fetching signature from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SignatureParseError(f"Failed to fetch signature from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return _parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    """Load a signature document from a local .json, .yaml or .yml file."""
    file_path = Path(path)
    if not file_path.is_file():
        raise SignatureParseError(f"Signature file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SignatureParseError(f"Failed to read signature file {path}: {exc}") from exc

    if not content.strip():
        raise SignatureParseError(f"Signature file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.

    Raises:
        SignatureParseError: If the content cannot be parsed as either format
            or is not a mapping.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
            if not isinstance(result, dict):
                raise SignatureParseError(
                    "Signature must be a JSON/YAML object (got "
                    f"{type(result).__name__})"
                )
            return result
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise SignatureParseError(f"Invalid JSON: {exc}") from exc

    try:
        result = yaml.safe_load(content)
        if not isinstance(result, dict):
            raise SignatureParseError(
                "Signature must be a JSON/YAML object (got "
                f"{type(result).__name__ if result is not None else 'empty document'})"
            )
        return result
    except yaml.YAMLError as exc:
        yaml_error = exc

    msg = "Failed to parse signature as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise SignatureParseError(msg)


def load_source_file(source: str, path: Optional[Path] = None) -> SourceFile:
    """Read and parse a Python module from a file path or stdin ('-').

    Args:
        source: Path to a ``.py`` file, or '-' to read the module from stdin.
        path: Path recorded on the result. Defaults to *source* itself, or
            ``<stdin>`` in the current directory for stdin input.

    Raises:
        SignatureParseError: If the module cannot be read or has a syntax error.
    """
    if source == STDIN_SOURCE:
        content = _read_stdin()
        origin = path or Path.cwd() / "<stdin>"
    else:
        file_path = Path(source)
        if not file_path.is_file():
            raise SignatureParseError(f"Entry module not found: {source}")
        try:
            content = file_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SignatureParseError(f"Failed to read entry module {source}: {exc}") from exc
        origin = path or file_path

    try:
        tree = ast.parse(content, filename=str(origin))
    except SyntaxError as exc:
        raise SignatureParseError(
            f"Entry module {origin} is not valid Python: {exc.msg} (line {exc.lineno})"
        ) from exc
    return SourceFile(path=origin, tree=tree)
