"""Detection of schema declarations inside document text."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List
from urllib.parse import unquote
import re

_XML_MODEL = re.compile(r"<\?xml-model\s+href=[\"']([^\"']+)[\"'][^?]*\?>", re.IGNORECASE)
_DOCTYPE_SYSTEM = re.compile(r"<!DOCTYPE\s+[\w:.-]+\s+SYSTEM\s+[\"']([^\"']+)[\"']\s*>", re.IGNORECASE)


class DeclarationType(Enum):
    XML_MODEL = "xml-model"
    DOCTYPE = "doctype"


class SchemaFormat(Enum):
    RNG = "rng"
    DTD = "dtd"
    XSD = "xsd"
    RNC = "rnc"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SchemaDeclaration:
    """One schema reference found in a document."""
    type: DeclarationType
    href: str
    format: SchemaFormat
    is_local: bool
    declaration: str

    def to_dict(self):
        return {
            "type": self.type.value,
            "href": self.href,
            "format": self.format.value,
            "isLocal": self.is_local,
            "declaration": self.declaration,
        }


@dataclass
class DeclarationAnalysis:
    """Summary of what the declarations mean for loading a grammar."""
    warnings: List[str] = field(default_factory=list)
    has_unsupported_format: bool = False
    local_schemas: List[SchemaDeclaration] = field(default_factory=list)

    @property
    def has_local_schema(self) -> bool:
        return bool(self.local_schemas)


def schema_format(href: str) -> SchemaFormat:
    """Format from the reference's file extension."""
    lower = href.lower()
    for fmt in (SchemaFormat.RNG, SchemaFormat.DTD, SchemaFormat.XSD, SchemaFormat.RNC):
        if lower.endswith(f".{fmt.value}"):
            return fmt
    return SchemaFormat.UNKNOWN


def is_local_path(href: str) -> bool:
    return not href.startswith(("http://", "https://"))


def detect_schema_declarations(text: str) -> List[SchemaDeclaration]:
    """
    Find xml-model processing instructions and DOCTYPE SYSTEM identifiers.

    Args:
        text: Document text

    Returns:
        List[SchemaDeclaration]: xml-model declarations first, then DOCTYPEs
    """
    declarations = []

    for match in _XML_MODEL.finditer(text):
        href = match.group(1)
        declarations.append(SchemaDeclaration(
            type=DeclarationType.XML_MODEL,
            href=href,
            format=schema_format(href),
            is_local=is_local_path(href),
            declaration=match.group(0),
        ))

    for match in _DOCTYPE_SYSTEM.finditer(text):
        href = unquote(match.group(1))
        declarations.append(SchemaDeclaration(
            type=DeclarationType.DOCTYPE,
            href=href,
            format=schema_format(href),
            is_local=is_local_path(href),
            declaration=match.group(0),
        ))

    return declarations


def analyze_schema_declarations(declarations: List[SchemaDeclaration]) -> DeclarationAnalysis:
    """Flag declarations in formats the RELAX NG importer cannot read."""
    analysis = DeclarationAnalysis()
    unsupported = {
        SchemaFormat.DTD: "DTD schemas are not supported",
        SchemaFormat.XSD: "XSD schemas are not supported",
        SchemaFormat.RNC: "Compact RELAX NG (RNC) is not supported",
    }

    for declaration in declarations:
        if declaration.is_local:
            analysis.local_schemas.append(declaration)
        if declaration.format in unsupported:
            analysis.has_unsupported_format = True
            analysis.warnings.append(f"{unsupported[declaration.format]}: {declaration.href}")

    return analysis
