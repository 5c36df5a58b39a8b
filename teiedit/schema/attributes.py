"""Effective attribute resolution through the attribute-class graph."""
from collections import deque
from typing import Deque, List, Mapping, Optional, Sequence, Set, Tuple

from .models.types import AttrSpec, ElementSpec, SchemaInfo


class AttributeResolver:
    """
    Resolves an element's effective attributes.

    Local attributes come first; class attributes follow in breadth-first
    order over the declared classes and their ancestors. The first
    definition of a name wins. Cyclic inheritance terminates because each
    class is expanded at most once.
    """

    def __init__(
        self,
        elements: Mapping[str, ElementSpec],
        attribute_classes: Mapping[str, Sequence[AttrSpec]],
        inheritance: Mapping[str, Sequence[str]],
        element_classes: Optional[Mapping[str, Sequence[str]]] = None
    ):
        self.elements = elements
        self.attribute_classes = attribute_classes
        self.inheritance = inheritance
        self.element_classes = element_classes or {}

    def _declared_classes(self, element: ElementSpec) -> Tuple[str, ...]:
        return tuple(self.element_classes.get(element.name) or element.attr_classes)

    def resolve(self, element_name: str) -> List[AttrSpec]:
        element = self.elements.get(element_name)
        if element is None:
            return []

        result: List[AttrSpec] = []
        seen_names: Set[str] = set()
        for attr in element.local_attrs:
            if attr.name not in seen_names:
                seen_names.add(attr.name)
                result.append(attr)

        resolved: Set[str] = set()
        queue: Deque[str] = deque(self._declared_classes(element))
        while queue:
            class_name = queue.popleft()
            if class_name in resolved:
                continue
            resolved.add(class_name)
            queue.extend(self.inheritance.get(class_name, ()))

            for attr in self.attribute_classes.get(class_name, ()):
                if attr.name not in seen_names:
                    seen_names.add(attr.name)
                    result.append(attr)

        return result


def get_element_attributes(schema: SchemaInfo, element_name: str) -> List[AttrSpec]:
    """Effective attributes of ``element_name``; empty for unknown elements."""
    return list(schema.resolved_attributes.get(element_name, ()))
