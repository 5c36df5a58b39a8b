"""RELAX NG grammar import."""
from dataclasses import replace
from typing import Dict, FrozenSet, Iterable, List, Optional
import logging

from lxml import etree

from ..models.types import (
    UNBOUNDED,
    AttrSpec,
    ContentItem,
    ContentModel,
    ContentModelType,
    ElementItem,
    ElementSpec,
    GroupItem,
    MaxOccurs,
    ModelItem,
    RngParseError,
    SchemaInfo,
    TextItem,
    is_unbounded,
)

logger = logging.getLogger(__name__)

RNG_NS = "http://relaxng.org/ns/structure/1.0"

_SKIPPED = {"attribute", "documentation", "desc"}
_GROUPS = {
    "choice": ContentModelType.CHOICE,
    "interleave": ContentModelType.INTERLEAVE,
    "group": ContentModelType.GROUP,
    "mixed": ContentModelType.INTERLEAVE,
}
_DATA = {"data", "value", "list"}


def _local(node) -> Optional[str]:
    if not isinstance(node.tag, str):
        return None
    return etree.QName(node).localname


def _rng_children(node) -> Iterable:
    for child in node:
        if isinstance(child.tag, str) and etree.QName(child).namespace == RNG_NS:
            yield child


def _documentation(node) -> Optional[str]:
    """First a:documentation or desc child, whitespace trimmed."""
    for child in node:
        if _local(child) in ("documentation", "desc"):
            return "".join(child.itertext()).strip() or None
    return None


def _with_bounds(model: ContentModel, min_occurs: int, max_occurs: MaxOccurs) -> ContentModel:
    if model.type == ContentModelType.ELEMENT:
        items = tuple(replace(item, min_occurs=min_occurs, max_occurs=max_occurs) for item in model.items)
        return replace(model, items=items, min_occurs=min_occurs, max_occurs=max_occurs)
    return replace(model, min_occurs=min_occurs, max_occurs=max_occurs)


class RngGrammar:
    """One parsed RELAX NG document with its named patterns."""

    def __init__(self, root):
        self.root = root
        self.defines: Dict[str, object] = {}
        for define in root.iter(f"{{{RNG_NS}}}define"):
            name = define.get("name")
            if name:
                # combine="choice"/"interleave" redefinitions are not merged
                self.defines.setdefault(name, define)

    def element_specs(self) -> List[ElementSpec]:
        specs: Dict[str, ElementSpec] = {}
        for node in self.root.iter(f"{{{RNG_NS}}}element"):
            name = node.get("name")
            if not name or name in specs:
                continue
            specs[name] = ElementSpec(
                name=name,
                documentation=_documentation(node),
                local_attrs=tuple(self.attributes(node)),
                content_model=self.content_model(node, frozenset()),
            )
        return sorted(specs.values(), key=lambda spec: spec.name.lower())

    # Attributes

    def attributes(self, node) -> List[AttrSpec]:
        found: List[AttrSpec] = []
        positions: Dict[str, int] = {}

        def walk(parent, required: bool, visited: FrozenSet[str]) -> None:
            for child in _rng_children(parent):
                local = _local(child)
                if local == "attribute":
                    name = child.get("name")
                    if not name:
                        continue
                    if name in positions:
                        index = positions[name]
                        if required and not found[index].required:
                            found[index] = replace(found[index], required=True)
                        continue
                    positions[name] = len(found)
                    found.append(self._attr_spec(child, name, required))
                elif local == "optional":
                    walk(child, False, visited)
                elif local == "ref":
                    ref = child.get("name")
                    if ref and ref not in visited and ref in self.defines:
                        walk(self.defines[ref], required, visited | {ref})
                elif local in ("group", "interleave", "choice", "zeroOrMore", "oneOrMore"):
                    walk(child, required and local not in ("choice", "zeroOrMore"), visited)

        walk(node, True, frozenset())
        return found

    def _attr_spec(self, node, name: str, required: bool) -> AttrSpec:
        values = tuple(
            value.text.strip() for value in node.iter(f"{{{RNG_NS}}}value")
            if value.text and value.text.strip()
        )
        data = next(node.iter(f"{{{RNG_NS}}}data"), None)
        return AttrSpec(
            name=name,
            required=required,
            values=values or None,
            datatype=data.get("type") if data is not None else None,
            documentation=_documentation(node),
        )

    # Content models

    def _content_nodes(self, node) -> List:
        return [child for child in _rng_children(node) if _local(child) not in _SKIPPED]

    def content_model(self, node, visited: FrozenSet[str]) -> Optional[ContentModel]:
        children = self._content_nodes(node)
        if not children:
            return ContentModel(type=ContentModelType.EMPTY, min_occurs=0, max_occurs=0)
        if len(children) == 1:
            return self._node_model(children[0], visited)
        return ContentModel(
            type=ContentModelType.SEQUENCE,
            items=tuple(self._items(children, visited)),
        )

    def _items(self, nodes, visited: FrozenSet[str]) -> List[ContentItem]:
        items = []
        for node in nodes:
            item = self._node_item(node, visited)
            if item is not None:
                items.append(item)
        return items

    def _resolve(self, ref: Optional[str], visited: FrozenSet[str]) -> Optional[ContentModel]:
        if not ref or ref in visited or ref not in self.defines:
            return None
        return self.content_model(self.defines[ref], visited | {ref})

    def _node_model(self, node, visited: FrozenSet[str]) -> Optional[ContentModel]:
        local = _local(node)

        if local == "element":
            name = node.get("name")
            return ContentModel(
                type=ContentModelType.ELEMENT,
                items=(ElementItem(name),) if name else (),
            )

        elif local == "text" or local in _DATA:
            return ContentModel(type=ContentModelType.TEXT, min_occurs=0, max_occurs=UNBOUNDED)

        elif local == "empty":
            return ContentModel(type=ContentModelType.EMPTY, min_occurs=0, max_occurs=0)

        elif local in _GROUPS:
            items = self._items(self._content_nodes(node), visited)
            if local == "mixed":
                items.insert(0, TextItem(0, UNBOUNDED))
            return ContentModel(type=_GROUPS[local], items=tuple(items))

        elif local == "optional":
            inner = self.content_model(node, visited)
            if inner is None:
                return None
            return _with_bounds(inner, 0, UNBOUNDED if is_unbounded(inner.max_occurs) else 1)

        elif local == "zeroOrMore":
            inner = self.content_model(node, visited)
            return _with_bounds(inner, 0, UNBOUNDED) if inner else None

        elif local == "oneOrMore":
            inner = self.content_model(node, visited)
            return _with_bounds(inner, 1, UNBOUNDED) if inner else None

        elif local == "ref":
            resolved = self._resolve(node.get("name"), visited)
            if resolved is not None:
                return resolved
            ref = node.get("name")
            return ContentModel(
                type=ContentModelType.GROUP,
                items=(ModelItem(ref),) if ref else (),
            )

        return None

    def _node_item(self, node, visited: FrozenSet[str]) -> Optional[ContentItem]:
        local = _local(node)

        if local == "element":
            name = node.get("name")
            return ElementItem(name) if name else None

        elif local == "text" or local in _DATA:
            return TextItem(0, UNBOUNDED)

        elif local == "ref":
            ref = node.get("name")
            resolved = self._resolve(ref, visited)
            if resolved is not None:
                return GroupItem(resolved, resolved.min_occurs, resolved.max_occurs)
            return ModelItem(ref) if ref else None

        elif local in ("optional", "zeroOrMore", "oneOrMore"):
            content = self.content_model(node, visited)
            # wrappers holding only attributes add no content
            if content is None or (content.type == ContentModelType.EMPTY and not content.items):
                return None
            bounds = {"optional": (0, 1), "zeroOrMore": (0, UNBOUNDED), "oneOrMore": (1, UNBOUNDED)}
            return GroupItem(content, *bounds[local])

        elif local in _GROUPS:
            content = self._node_model(node, visited)
            return GroupItem(content) if content else None

        return None


def parse_rng(rng_text: str) -> List[ElementSpec]:
    """
    Read the element declarations of a RELAX NG grammar.

    Args:
        rng_text: RELAX NG document in XML syntax

    Returns:
        List[ElementSpec]: One spec per element name, sorted by name

    Raises:
        RngParseError: malformed XML or no element declarations
    """
    parser = etree.XMLParser(recover=False, resolve_entities=False, no_network=True, encoding="utf-8")
    try:
        root = etree.fromstring(rng_text.encode("utf-8", errors="surrogatepass"), parser)
    except etree.XMLSyntaxError as e:
        raise RngParseError(f"RNG parse error: Line {e.lineno}, Column {e.offset}: {e.msg}") from e

    elements = RngGrammar(root).element_specs()
    if not elements:
        raise RngParseError("RNG grammar declares no named elements")

    logger.debug(f"Parsed {len(elements)} elements from RELAX NG grammar")
    return elements


def schema_from_elements(elements: Iterable[ElementSpec], schema_id: str, name: str) -> SchemaInfo:
    """Wrap standalone element specs in a SchemaInfo."""
    return SchemaInfo(
        schema_id=schema_id,
        name=name,
        elements={spec.name: spec for spec in elements},
    )
