"""Well-formedness gate backed by lxml."""
from typing import Optional

from lxml import etree

from ..models.types import DiagnosticCode, ValidationError, ValidationSeverity
from .lexer import find_malformed_tag_start, find_tag_mismatch


def _strict_parser() -> etree.XMLParser:
    return etree.XMLParser(
        recover=False,
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        encoding="utf-8",
    )


def check_well_formedness(text: str) -> Optional[ValidationError]:
    """
    Parse ``text`` strictly.

    Returns:
        Optional[ValidationError]: None when well-formed, otherwise a single
        error positioned at the best available guess
    """
    try:
        # Lone surrogates pass through as invalid bytes and fail the parse
        etree.fromstring(text.encode("utf-8", errors="surrogatepass"), _strict_parser())
        return None
    except etree.XMLSyntaxError as e:
        message = (e.msg or "XML is not well-formed").strip()
        line, column = 1, 1
        if e.lineno:
            line, column = e.lineno, max(e.offset or 1, 1)

    # Parser positions drift after the first error; prefer our own scans
    malformed = find_malformed_tag_start(text)
    if malformed:
        line, column = malformed
    else:
        mismatch = find_tag_mismatch(text)
        if mismatch:
            message, line, column = mismatch.message, mismatch.line, mismatch.column

    return ValidationError(
        message=message,
        line=line,
        column=column,
        severity=ValidationSeverity.ERROR,
        code=DiagnosticCode.MALFORMED_DOCUMENT,
    )
