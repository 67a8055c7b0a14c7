from __future__ import annotations

import logging

from .ast import AstError
from .builder import build
from .lexer import tokenize
from .parser import parse
from .types import SequenceDiagram

logger = logging.getLogger(__name__)


def compile_diagram(text: str) -> tuple[SequenceDiagram, list[AstError]]:
    """Compile notation text into a diagram plus the non-fatal errors found.

    Always returns a diagram, possibly partially built. Errors are sorted
    by source position so parser and builder errors interleave naturally.
    """
    if text is None:
        raise TypeError("text must be a string, not None")

    parsed = parse(tokenize(text))
    diagram, build_errors = build(parsed.statements)
    errors = sorted(
        parsed.errors + build_errors,
        key=lambda e: (e.token.line, e.token.column),
    )
    logger.debug(
        "Compiled %d statements with %d errors", len(parsed.statements), len(errors)
    )
    return diagram, errors
