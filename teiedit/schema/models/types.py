# teiedit/schema/models/types.py

from dataclasses import dataclass, field, replace
from enum import Enum
from functools import cached_property
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, Mapping, Optional, Tuple, Union


class ProcessingPhase(Enum):
    """Phases of the schema pipeline."""
    INGESTION = "ingestion"
    COMPILATION = "compilation"


class Unbounded(Enum):
    """Sentinel type for an occurrence bound with no upper limit."""
    UNBOUNDED = "unbounded"

    def __repr__(self) -> str:
        return "UNBOUNDED"


UNBOUNDED = Unbounded.UNBOUNDED

# Type aliases
MaxOccurs = Union[int, Unbounded]
PathLike = Union[str, Path]


def is_unbounded(max_occurs: MaxOccurs) -> bool:
    return max_occurs is UNBOUNDED


def exceeds(count: int, max_occurs: MaxOccurs) -> bool:
    """True if ``count`` is above a finite upper bound."""
    return not is_unbounded(max_occurs) and count > max_occurs


def check_bounds(min_occurs: int, max_occurs: MaxOccurs) -> None:
    """Raise ValueError for bounds that cannot describe any occurrence count."""
    if isinstance(min_occurs, bool) or not isinstance(min_occurs, int) or min_occurs < 0:
        raise ValueError(f"minOccurs must be a non-negative integer, got {min_occurs!r}")
    if is_unbounded(max_occurs):
        return
    if isinstance(max_occurs, bool) or not isinstance(max_occurs, int) or max_occurs < 0:
        raise ValueError(f"maxOccurs must be a non-negative integer or UNBOUNDED, got {max_occurs!r}")
    if max_occurs < min_occurs:
        raise ValueError(f"maxOccurs ({max_occurs}) is lower than minOccurs ({min_occurs})")


# Attribute types

@dataclass(frozen=True)
class AttrSpec:
    """Contract of one attribute on an element or attribute class."""
    name: str
    required: bool = False
    values: Optional[Tuple[str, ...]] = None
    default_value: Optional[str] = None
    datatype: Optional[str] = None
    documentation: Optional[str] = None
    suggested_values: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class AttrClassDef:
    """Named, inheritable bundle of attributes."""
    name: str
    inherits: Tuple[str, ...] = ()
    attrs: Tuple[AttrSpec, ...] = ()
    documentation: Optional[str] = None


# Content model types

class ContentModelType(Enum):
    """Arrangement of a compiled content model."""
    SEQUENCE = "sequence"
    CHOICE = "choice"
    INTERLEAVE = "interleave"
    GROUP = "group"
    ELEMENT = "element"
    TEXT = "text"
    EMPTY = "empty"


class ContentItemKind(Enum):
    """Kinds of content model items."""
    ELEMENT = "element"
    TEXT = "text"
    GROUP = "group"
    MODEL = "model"


class DeclaredContentType(Enum):
    """Coarse content shape as declared by an element's top-level particles."""
    SEQUENCE = "sequence"
    CHOICE = "choice"
    INTERLEAVE = "interleave"
    MIXED = "mixed"
    EMPTY = "empty"


@dataclass(frozen=True)
class ElementItem:
    """A named child element at this position."""
    name: str
    min_occurs: int = 1
    max_occurs: MaxOccurs = 1

    kind = ContentItemKind.ELEMENT

    def __post_init__(self):
        check_bounds(self.min_occurs, self.max_occurs)


@dataclass(frozen=True)
class TextItem:
    """Character data permitted at this position."""
    min_occurs: int = 1
    max_occurs: MaxOccurs = 1

    kind = ContentItemKind.TEXT

    def __post_init__(self):
        check_bounds(self.min_occurs, self.max_occurs)


@dataclass(frozen=True)
class GroupItem:
    """A nested sub-model, e.g. an expanded macro or model class."""
    content: "ContentModel"
    min_occurs: int = 1
    max_occurs: MaxOccurs = 1

    kind = ContentItemKind.GROUP

    def __post_init__(self):
        check_bounds(self.min_occurs, self.max_occurs)


@dataclass(frozen=True)
class ModelItem:
    """A named pattern that could not be resolved to concrete content."""
    name: str
    min_occurs: int = 1
    max_occurs: MaxOccurs = 1

    kind = ContentItemKind.MODEL

    def __post_init__(self):
        check_bounds(self.min_occurs, self.max_occurs)


ContentItem = Union[ElementItem, TextItem, GroupItem, ModelItem]


@dataclass(frozen=True)
class ContentModel:
    """Compiled structural contract for the content of one element."""
    type: ContentModelType
    items: Tuple[ContentItem, ...] = ()
    min_occurs: int = 1
    max_occurs: MaxOccurs = 1

    def __post_init__(self):
        check_bounds(self.min_occurs, self.max_occurs)

    @cached_property
    def element_names(self) -> FrozenSet[str]:
        """Every element name reachable in this model, nested groups included."""
        return frozenset(iter_element_names(self))


def iter_element_names(model: ContentModel) -> Iterator[str]:
    for item in model.items:
        yield from iter_item_element_names(item)


def iter_item_element_names(item: ContentItem) -> Iterator[str]:
    if isinstance(item, ElementItem):
        yield item.name
    elif isinstance(item, GroupItem):
        yield from iter_element_names(item.content)
    elif isinstance(item, (TextItem, ModelItem)):
        return
    else:
        raise TypeError(f"Unknown content item: {item!r}")


# Element types

@dataclass(frozen=True)
class ElementSpec:
    """Resolved, queryable definition of one element."""
    name: str
    documentation: Optional[str] = None
    attr_classes: Tuple[str, ...] = ()
    model_classes: Tuple[str, ...] = ()
    local_attrs: Tuple[AttrSpec, ...] = ()
    children: FrozenSet[str] = frozenset()
    content_model_type: Optional[DeclaredContentType] = None
    content_model: Optional[ContentModel] = None

    def __post_init__(self):
        # children is a cache of content_model and is regenerated from it
        if self.content_model is not None:
            object.__setattr__(self, "children", self.content_model.element_names)
        elif not isinstance(self.children, frozenset):
            object.__setattr__(self, "children", frozenset(self.children))

    def with_content_model(self, content_model: Optional[ContentModel]) -> "ElementSpec":
        """Copy of this spec with a new model and matching children."""
        return replace(self, content_model=content_model, children=frozenset())


@dataclass(frozen=True)
class SchemaInfo:
    """
    Compiled schema handed to the resolver and validator.

    Holds the four maps of a compiled schema module. Treated as read-only
    once built; effective attributes are resolved eagerly so the validator
    never walks the class graph per tag.
    """
    schema_id: str
    name: str
    elements: Mapping[str, ElementSpec] = field(default_factory=dict)
    attribute_classes: Mapping[str, Tuple[AttrSpec, ...]] = field(default_factory=dict)
    attribute_class_inheritance: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    element_attribute_classes: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    resolved_attributes: Mapping[str, Tuple[AttrSpec, ...]] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self):
        from ..attributes import AttributeResolver

        resolver = AttributeResolver(
            elements=self.elements,
            attribute_classes=self.attribute_classes,
            inheritance=self.attribute_class_inheritance,
            element_classes=self.element_attribute_classes,
        )
        object.__setattr__(self, "resolved_attributes", {
            name: tuple(resolver.resolve(name)) for name in self.elements
        })

    def get_element(self, name: str) -> Optional[ElementSpec]:
        return self.elements.get(name)


# Validation types

class ValidationSeverity(Enum):
    """Validation message severity levels."""
    ERROR = "error"
    WARNING = "warning"


class DiagnosticCode(Enum):
    """Kinds of document diagnostics."""
    MALFORMED_DOCUMENT = "malformed_document"
    UNKNOWN_ELEMENT = "unknown_element"
    UNKNOWN_ATTRIBUTE = "unknown_attribute"
    INVALID_ATTRIBUTE_VALUE = "invalid_attribute_value"
    INVALID_NESTING = "invalid_nesting"
    MISSING_REQUIRED_ATTRIBUTE = "missing_required_attribute"
    CHOICE_VIOLATION = "choice_violation"
    CARDINALITY_EXCEEDED = "cardinality_exceeded"
    CARDINALITY_BELOW_MINIMUM = "cardinality_below_minimum"
    MISSING_REQUIRED_CHILD = "missing_required_child"
    SELF_CLOSING_WITH_REQUIRED_CHILDREN = "self_closing_with_required_children"
    INVALID_EMPTY_CONTENT = "invalid_empty_content"
    UNCLOSED_TAG = "unclosed_tag"


@dataclass(frozen=True)
class ValidationError:
    """A diagnostic with a 1-based position."""
    message: str
    line: int
    column: int
    severity: ValidationSeverity
    code: DiagnosticCode

    def to_dict(self) -> Dict[str, Union[str, int]]:
        return {
            "message": self.message,
            "line": self.line,
            "column": self.column,
            "severity": self.severity.value,
            "code": self.code.value,
        }


# Error types

class ProcessingError(Exception):
    """Custom error for processing failures"""
    def __init__(
        self,
        error_type: str,
        message: str,
        context: Union[str, Path],
        element_id: Optional[str] = None
    ):
        self.error_type = error_type
        self.message = message
        self.context = context
        self.element_id = element_id
        super().__init__(self.message)


class SchemaCorpusError(ProcessingError):
    """Structural anomaly in a grammar corpus."""
    def __init__(self, message: str, context: Union[str, Path] = "corpus",
                 element_id: Optional[str] = None):
        super().__init__("corpus", message, context, element_id)


class SchemaNotFoundError(ProcessingError):
    """Requested schema is not registered."""
    def __init__(self, schema_id: str):
        super().__init__("schema", f"Unknown schema: {schema_id}", schema_id)


class RngParseError(ProcessingError):
    """RELAX NG grammar could not be read."""
    def __init__(self, message: str, context: Union[str, Path] = "rng"):
        super().__init__("rng", message, context)
