"""Stack-based structural validation of document text against a SchemaInfo."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging

from ...config import ValidatorConfig
from ..models.types import (
    AttrSpec,
    ContentModelType,
    DiagnosticCode,
    ElementSpec,
    SchemaInfo,
    ValidationError,
    ValidationSeverity,
)
from .content_model_validator import ChildRef, get_required_children, validate_content_model
from .lexer import TagKind, TagLexer, TagToken
from .well_formedness import check_well_formedness

logger = logging.getLogger(__name__)


@dataclass
class _Frame:
    name: str
    line: int
    column: int
    spec: Optional[ElementSpec]
    children: List[ChildRef] = field(default_factory=list)


def _preview(values, limit: int) -> str:
    shown = ", ".join(values[:limit])
    return shown + ("..." if len(values) > limit else "")


class StructureValidator:
    """
    Single pass over the tag stream of one document.

    Holds per-call state only; create one per document snapshot.
    """

    def __init__(self, schema: SchemaInfo, config: Optional[ValidatorConfig] = None):
        self.schema = schema
        self.config = config or ValidatorConfig()
        self.errors: List[ValidationError] = []
        self.stack: List[_Frame] = []

    def _report(self, message: str, line: int, column: int,
                severity: ValidationSeverity, code: DiagnosticCode) -> None:
        self.errors.append(ValidationError(message, line, column, severity, code))

    def run(self, text: str) -> List[ValidationError]:
        lexer = TagLexer(text)
        for token in lexer.tokens():
            if token.kind == TagKind.CLOSE:
                self._handle_close(token)
            else:
                self._handle_open(token, lexer)

        for frame in self.stack:
            self._report(
                f"Unclosed tag <{frame.name}>", frame.line, frame.column,
                ValidationSeverity.ERROR, DiagnosticCode.UNCLOSED_TAG,
            )
        self.stack = []
        return self.errors

    def _handle_close(self, token: TagToken) -> None:
        if self.stack and self.stack[-1].name == token.name:
            self._close(self.stack.pop())
            return

        for depth in range(len(self.stack) - 1, -1, -1):
            if self.stack[depth].name == token.name:
                # Frames opened after the match are abandoned without diagnostics
                del self.stack[depth + 1:]
                self._close(self.stack.pop())
                return

        logger.debug(f"Ignoring unmatched </{token.name}> at {token.line}:{token.column}")

    def _close(self, frame: _Frame) -> None:
        if frame.spec is None or frame.spec.content_model is None:
            return

        model = frame.spec.content_model
        self.errors.extend(validate_content_model(frame.name, model, frame.children))

        present = {child.name for child in frame.children}
        for required in get_required_children(model):
            if required not in present:
                self._report(
                    f"<{frame.name}> requires <{required}> child element",
                    frame.line, frame.column,
                    ValidationSeverity.WARNING, DiagnosticCode.MISSING_REQUIRED_CHILD,
                )

    def _handle_open(self, token: TagToken, lexer: TagLexer) -> None:
        spec = self.schema.get_element(token.name)

        if spec is None:
            self._report(
                f"Unknown element <{token.name}>", token.line, token.column,
                ValidationSeverity.WARNING, DiagnosticCode.UNKNOWN_ELEMENT,
            )
        else:
            self._check_nesting(token)
            self._check_attributes(token, lexer)

        if self.stack:
            self.stack[-1].children.append(ChildRef(token.name, token.line, token.column))

        if token.kind == TagKind.SELF_CLOSING:
            self._check_self_closing(token, spec)
        else:
            self.stack.append(_Frame(token.name, token.line, token.column, spec))

    def _check_nesting(self, token: TagToken) -> None:
        if not self.stack:
            return
        parent = self.stack[-1]
        if parent.spec and parent.spec.children and token.name not in parent.spec.children:
            self._report(
                f"<{token.name}> is not allowed inside <{parent.name}>",
                token.line, token.column,
                ValidationSeverity.ERROR, DiagnosticCode.INVALID_NESTING,
            )

    def _check_attributes(self, token: TagToken, lexer: TagLexer) -> None:
        declared: Dict[str, AttrSpec] = {
            attr.name: attr for attr in self.schema.resolved_attributes.get(token.name, ())
        }
        present = set()

        for attribute in lexer.attributes(token):
            present.add(attribute.name)
            if attribute.name == "xmlns" or attribute.name.startswith("xmlns:"):
                continue

            attr_spec = declared.get(attribute.name)
            if attr_spec is None:
                self._report(
                    f'Unknown attribute "{attribute.name}" on <{token.name}>',
                    attribute.line, attribute.column,
                    ValidationSeverity.WARNING, DiagnosticCode.UNKNOWN_ATTRIBUTE,
                )
            elif attr_spec.values and attribute.value and attribute.value not in attr_spec.values:
                allowed = _preview(attr_spec.values, self.config.enum_preview_limit)
                self._report(
                    f'Invalid value "{attribute.value}" for @{attribute.name}. Allowed: {allowed}',
                    attribute.line, attribute.column,
                    ValidationSeverity.WARNING, DiagnosticCode.INVALID_ATTRIBUTE_VALUE,
                )

        for attr_spec in declared.values():
            if attr_spec.required and attr_spec.name not in present:
                self._report(
                    f'Missing required attribute "{attr_spec.name}" on <{token.name}>',
                    token.line, token.column,
                    ValidationSeverity.ERROR, DiagnosticCode.MISSING_REQUIRED_ATTRIBUTE,
                )

    def _check_self_closing(self, token: TagToken, spec: Optional[ElementSpec]) -> None:
        if spec is None or spec.content_model is None:
            return
        if spec.content_model.type == ContentModelType.EMPTY:
            return
        required = get_required_children(spec.content_model)
        if required:
            self._report(
                f"<{token.name}/> is self-closing but requires children: "
                f"{_preview(required, self.config.self_closing_preview_limit)}",
                token.line, token.column,
                ValidationSeverity.WARNING, DiagnosticCode.SELF_CLOSING_WITH_REQUIRED_CHILDREN,
            )


def check_structure(text: str, schema: SchemaInfo,
                    config: Optional[ValidatorConfig] = None) -> List[ValidationError]:
    """Structural checks without the well-formedness gate."""
    return StructureValidator(schema, config).run(text)


def validate_document(text: str, schema: SchemaInfo,
                      config: Optional[ValidatorConfig] = None) -> List[ValidationError]:
    """
    Validate a document snapshot.

    Args:
        text: Full document text
        schema: Compiled schema
        config: Message shaping options

    Returns:
        List[ValidationError]: A single malformed-document error, or the
        structural diagnostics in document order
    """
    if not text.strip():
        return []

    malformed = check_well_formedness(text)
    if malformed is not None:
        return [malformed]

    return check_structure(text, schema, config)
