"""Turn a raw signature document into a :class:`~clisynth.models.TransformResult`.

A signature document describes an already-analysed function::

    name: greet
    description: Greet someone.
    positionals:
      - name: who
        call: "positional('who', type='string')"
    options:
      - name: loud
        call: "option('loud', type='boolean', alias='l')"
    ref:
      greet.py:
        named: [greet]

Each ``call`` is a single Python call expression with a bare-name callee; it
is parsed with :func:`ast.parse` and becomes one link of the builder chain.
When ``call`` is omitted a minimal ``positional('<name>')`` or
``option('<name>')`` is used. Relative ``ref`` paths are resolved against
*base_dir*.
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from clisynth.exceptions import SignatureParseError
from clisynth.generator.chain import make_call
from clisynth.models import (
    ExportRef,
    ModuleRefs,
    Option,
    Positional,
    TransformResult,
)


def extract_transform_result(
    doc: dict[str, Any], base_dir: Optional[Path] = None
) -> TransformResult:
    """Build a :class:`TransformResult` from a loaded signature document.

    Args:
        doc: The document as returned by
            :func:`~clisynth.parser.loader.load_signature`.
        base_dir: Directory that relative ``ref`` paths are resolved
            against. ``None`` leaves them as written.

    Returns:
        The validated transform result.

    Raises:
        SignatureParseError: If a required field is missing, a field has
            the wrong shape, or a ``call`` is not a bare-name call.
    """
    name = doc.get("name")
    if not isinstance(name, str) or not name:
        raise SignatureParseError("Signature is missing a 'name' string")

    positionals = [
        Positional(
            name=entry["name"],
            call=_extract_call(entry, "positional"),
            required=bool(entry.get("required", True)),
        )
        for entry in _entries(doc, "positionals")
    ]
    options = [
        Option(name=entry["name"], call=_extract_call(entry, "option"))
        for entry in _entries(doc, "options")
    ]

    try:
        return TransformResult(
            name=name,
            description=str(doc.get("description") or ""),
            positionals=positionals,
            options=options,
            ref=_extract_refs(doc.get("ref") or {}, base_dir),
        )
    except ValidationError as exc:
        raise SignatureParseError(f"Invalid signature for '{name}': {exc}") from exc


def _entries(doc: dict[str, Any], key: str) -> list[dict[str, Any]]:
    """Return the list under *key*, accepting bare strings as ``{name: ...}``."""
    raw = doc.get(key) or []
    if not isinstance(raw, list):
        raise SignatureParseError(f"'{key}' must be a list")

    entries: list[dict[str, Any]] = []
    for item in raw:
        if isinstance(item, str):
            item = {"name": item}
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise SignatureParseError(f"Every entry of '{key}' needs a 'name' string")
        entries.append(item)
    return entries


def _extract_call(entry: dict[str, Any], default_callee: str) -> ast.Call:
    source = entry.get("call")
    if source is None:
        return make_call(default_callee, ast.Constant(value=entry["name"]))
    return parse_call(str(source))


def parse_call(source: str) -> ast.Call:
    """Parse *source* as a single standalone call such as ``option('x', type='string')``.

    Raises:
        SignatureParseError: If *source* is not valid Python or is not a call
            whose callee is a bare name.
    """
    try:
        node = ast.parse(source.strip(), mode="eval").body
    except SyntaxError as exc:
        raise SignatureParseError(f"Invalid call expression {source!r}: {exc.msg}") from exc
    if not isinstance(node, ast.Call) or not isinstance(node.func, ast.Name):
        raise SignatureParseError(
            f"Expected a call with a bare name callee, got {source!r}"
        )
    return node


def _extract_refs(raw: Any, base_dir: Optional[Path]) -> dict[Path, ModuleRefs]:
    if not isinstance(raw, dict):
        raise SignatureParseError("'ref' must map source files to their exports")

    refs: dict[Path, ModuleRefs] = {}
    for file_name, exports in raw.items():
        path = Path(file_name)
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        exports = exports or {}
        if not isinstance(exports, dict):
            raise SignatureParseError(f"Exports of '{file_name}' must be a mapping")
        refs[path] = ModuleRefs(
            default=[ExportRef(name=n) for n in _names(exports.get("default"), file_name)],
            named=[ExportRef(name=n) for n in _names(exports.get("named"), file_name)],
        )
    return refs


def _names(raw: Any, file_name: str) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    if not isinstance(raw, list) or not all(isinstance(n, str) for n in raw):
        raise SignatureParseError(f"Exports of '{file_name}' must be names")
    return list(raw)
