"""
Term File Reader.

Plugin descriptors and the enabled-plugins file are plain-text streams of
JSON values. A stream may hold any number of top-level values separated by
whitespace; callers decide how many they accept.
"""

import json
from pathlib import Path
from typing import Any

_decoder = json.JSONDecoder()


class TermError(ValueError):
    """Raised when a term stream cannot be parsed."""

    pass


def parse_terms(text: str) -> list[Any]:
    """
    Parse every top-level JSON value in a text stream.

    Args:
        text: Text to parse

    Returns:
        List of decoded values, in file order (empty for blank text)

    Raises:
        TermError: If the stream contains invalid JSON
    """
    terms = []
    pos = 0
    end = len(text)

    while True:
        while pos < end and text[pos].isspace():
            pos += 1
        if pos >= end:
            return terms

        try:
            term, pos = _decoder.raw_decode(text, pos)
        except json.JSONDecodeError as e:
            raise TermError(f"Invalid term: {e}") from e

        terms.append(term)


def read_term_file(path: Path) -> list[Any]:
    """
    Read and parse a term file.

    Args:
        path: File to read

    Returns:
        List of decoded top-level values

    Raises:
        OSError: If the file cannot be read
        TermError: If the content cannot be parsed
    """
    with open(path, encoding="utf-8") as f:
        return parse_terms(f.read())
