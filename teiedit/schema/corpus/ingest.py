"""Ingestion of raw grammar corpora into normalized records and indices."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import logging
import re

from ..models.types import (
    UNBOUNDED,
    AttrClassDef,
    AttrSpec,
    MaxOccurs,
    SchemaCorpusError,
    check_bounds,
)

logger = logging.getLogger(__name__)

_TAG_PATTERN = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")


class ParticleKind(Enum):
    """Content particle kinds understood by the compiler."""
    SEQUENCE = "sequence"
    ALTERNATE = "alternate"
    INTERLEAVE = "interleave"
    ELEMENT_REF = "elementRef"
    CLASS_REF = "classRef"
    MACRO_REF = "macroRef"
    TEXT_NODE = "textNode"
    EMPTY = "empty"
    # anyElement, dataRef and the like; compiles to nothing
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class Particle:
    """One node of a raw content particle tree."""
    kind: ParticleKind
    key: Optional[str] = None
    min_occurs: int = 1
    max_occurs: MaxOccurs = 1
    content: Tuple["Particle", ...] = ()


@dataclass(frozen=True)
class ElementDef:
    """Ingested element record, before content model compilation."""
    name: str
    documentation: Optional[str] = None
    attr_classes: Tuple[str, ...] = ()
    model_classes: Tuple[str, ...] = ()
    local_attrs: Tuple[AttrSpec, ...] = ()
    content: Optional[Tuple[Particle, ...]] = None


@dataclass(frozen=True)
class MacroDef:
    """Named, reusable content fragment."""
    name: str
    documentation: Optional[str] = None
    content: Optional[Tuple[Particle, ...]] = None


@dataclass
class CorpusIndex:
    """Arena of ingested records keyed by identifier."""
    title: Optional[str] = None
    edition: Optional[str] = None
    elements: Dict[str, ElementDef] = field(default_factory=dict)
    macros: Dict[str, MacroDef] = field(default_factory=dict)
    model_class_members: Dict[str, List[str]] = field(default_factory=dict)
    attribute_classes: Dict[str, AttrClassDef] = field(default_factory=dict)
    datatypes: Dict[str, Optional[str]] = field(default_factory=dict)

    def members_of(self, model_class: str) -> List[str]:
        return self.model_class_members.get(model_class, [])


def collapse(text: Optional[str]) -> Optional[str]:
    """Collapse whitespace runs; None for blank input."""
    if not text:
        return None
    collapsed = _WHITESPACE.sub(" ", text).strip()
    return collapsed or None


def extract_description(spec: Mapping[str, Any]) -> Optional[str]:
    """Best-effort short documentation for a corpus entry."""
    if short := collapse(spec.get("shortDesc")):
        return short

    desc = spec.get("desc")
    if isinstance(desc, (list, tuple)):
        desc = desc[0] if desc else None
    if not isinstance(desc, str):
        return None

    text = _TAG_PATTERN.sub("", desc).strip()
    if not text:
        return None
    return collapse(text.splitlines()[0])


def parse_occurs(raw: Any, context: str, attribute: str, allow_unbounded: bool) -> MaxOccurs:
    """Parse an occurrence token; absent means 1."""
    if raw is None or raw == "":
        return 1
    if allow_unbounded and raw == "unbounded":
        return UNBOUNDED
    if isinstance(raw, bool):
        raise SchemaCorpusError(f"Invalid {attribute} {raw!r}", context)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise SchemaCorpusError(f"Invalid {attribute} {raw!r}", context) from None
    if value < 0:
        raise SchemaCorpusError(f"Negative {attribute} {raw!r}", context)
    return value


def normalize_particles(raw: Any, context: str) -> Optional[Tuple[Particle, ...]]:
    """Normalize a raw particle list. None stays None (no content declared)."""
    if raw is None:
        return None
    if not isinstance(raw, (list, tuple)):
        raise SchemaCorpusError("Content must be a list of particles", context)

    particles: List[Particle] = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            raise SchemaCorpusError(f"Particle is not a mapping: {entry!r}", context)
        try:
            kind = ParticleKind(entry.get("type"))
        except ValueError:
            logger.debug(f"Unsupported particle {entry.get('type')!r} in {context}")
            particles.append(Particle(kind=ParticleKind.UNSUPPORTED, key=entry.get("type")))
            continue

        min_occurs = parse_occurs(entry.get("minOccurs"), context, "minOccurs", allow_unbounded=False)
        max_occurs = parse_occurs(entry.get("maxOccurs"), context, "maxOccurs", allow_unbounded=True)
        try:
            check_bounds(min_occurs, max_occurs)
        except ValueError as e:
            raise SchemaCorpusError(str(e), context) from None

        particles.append(Particle(
            kind=kind,
            key=entry.get("key"),
            min_occurs=min_occurs,
            max_occurs=max_occurs,
            content=normalize_particles(entry.get("content"), context) or (),
        ))
    return tuple(particles)


def extract_attr_spec(att_def: Mapping[str, Any], context: str) -> AttrSpec:
    """Convert a raw attribute definition to an AttrSpec."""
    name = att_def.get("ident")
    if not name:
        raise SchemaCorpusError("Attribute definition without ident", context)

    values = None
    suggested = None
    val_list = att_def.get("valList") or {}
    items = tuple(
        item["ident"] for item in val_list.get("valItem") or ()
        if isinstance(item, Mapping) and item.get("ident")
    )
    if items:
        if val_list.get("type", "closed") == "closed":
            values = items
        else:
            suggested = items

    datatype = None
    data_ref = (att_def.get("datatype") or {}).get("dataRef") or {}
    if data_ref.get("key"):
        datatype = data_ref["key"]
    elif data_ref.get("name"):
        datatype = data_ref["name"]

    return AttrSpec(
        name=name,
        required=att_def.get("usage") == "req",
        values=values,
        default_value=att_def.get("defaultVal") or None,
        datatype=datatype,
        documentation=collapse(att_def.get("shortDesc")),
        suggested_values=suggested,
    )


def _entries(corpus: Mapping[str, Any], path: Sequence[str]) -> List[Mapping[str, Any]]:
    """Fetch a collection by key path, checking its shape."""
    node: Any = corpus
    for key in path:
        node = node.get(key) if isinstance(node, Mapping) else None
        if node is None:
            return []
    label = ".".join(path)
    if not isinstance(node, (list, tuple)):
        raise SchemaCorpusError(f"'{label}' must be a list", label)

    for entry in node:
        if not isinstance(entry, Mapping):
            raise SchemaCorpusError(f"Entry in '{label}' is not a mapping: {entry!r}", label)
        if not entry.get("ident"):
            raise SchemaCorpusError(f"Entry in '{label}' has no ident", label)
    return list(node)


def _class_refs(spec: Mapping[str, Any], key: str) -> Tuple[str, ...]:
    classes = spec.get("classes") or {}
    return tuple(classes.get(key) or ())


def ingest_corpus(corpus: Mapping[str, Any]) -> CorpusIndex:
    """
    Build the corpus indices in a single pass.

    Args:
        corpus: Parsed p5subset-style mapping

    Returns:
        CorpusIndex: elements, macros, model-class membership and attribute classes

    Raises:
        SchemaCorpusError: the corpus is structurally unusable
    """
    if not isinstance(corpus, Mapping):
        raise SchemaCorpusError("Corpus must be a mapping")

    element_entries = _entries(corpus, ("elements",))
    model_entries = _entries(corpus, ("classes", "models"))
    attribute_entries = _entries(corpus, ("classes", "attributes"))
    macro_entries = _entries(corpus, ("macros",))
    datatype_entries = _entries(corpus, ("datatypes",))

    index = CorpusIndex(title=corpus.get("title"), edition=corpus.get("edition"))

    for macro in macro_entries:
        name = macro["ident"]
        index.macros[name] = MacroDef(
            name=name,
            documentation=extract_description(macro),
            content=normalize_particles(macro.get("content"), f"macro {name}"),
        )

    for cls in model_entries:
        index.model_class_members.setdefault(cls["ident"], [])

    for cls in attribute_entries:
        name = cls["ident"]
        index.attribute_classes[name] = AttrClassDef(
            name=name,
            inherits=_class_refs(cls, "atts"),
            attrs=tuple(extract_attr_spec(a, f"class {name}") for a in cls.get("attributes") or ()),
            documentation=extract_description(cls),
        )

    for datatype in datatype_entries:
        index.datatypes[datatype["ident"]] = extract_description(datatype)

    for spec in element_entries:
        name = spec["ident"]
        if name in index.elements:
            raise SchemaCorpusError(f"Duplicate element definition: {name}", "elements", name)

        model_classes = _class_refs(spec, "model")
        for model_class in model_classes:
            members = index.model_class_members.get(model_class)
            if members is not None:
                members.append(name)

        index.elements[name] = ElementDef(
            name=name,
            documentation=extract_description(spec),
            attr_classes=_class_refs(spec, "atts"),
            model_classes=model_classes,
            local_attrs=tuple(extract_attr_spec(a, f"element {name}") for a in spec.get("attributes") or ()),
            content=normalize_particles(spec.get("content"), f"element {name}"),
        )

    logger.debug(
        f"Ingested {len(index.elements)} elements, {len(index.macros)} macros, "
        f"{len(index.model_class_members)} model classes, "
        f"{len(index.attribute_classes)} attribute classes"
    )
    return index
