"""Signature parser -- load signature documents and entry modules.

This sub-package is the first half of the clisynth pipeline: turning a
signature document (JSON or YAML, local file, remote URL, or stdin) into a
:class:`~clisynth.models.TransformResult` the generator can consume, and
reading the Python entry module that stdin mode inlines.

Typical usage::

    from clisynth.parser import load_signature, extract_transform_result

    doc = load_signature("greet.yaml")
    result = extract_transform_result(doc, base_dir=Path("."))

Sub-modules:

* :mod:`~clisynth.parser.loader` -- I/O layer (URL, file, stdin) plus format
  detection.
* :mod:`~clisynth.parser.extractor` -- Validates the document and parses
  its call expressions.
"""

from clisynth.parser.extractor import extract_transform_result, parse_call
from clisynth.parser.loader import load_signature, load_source_file

__all__ = ["load_signature", "load_source_file", "extract_transform_result", "parse_call"]
