"""Expansion of particle trees into cycle-free content models."""
from dataclasses import replace
from typing import FrozenSet, List, Optional, Sequence

from ..corpus.ingest import CorpusIndex, Particle, ParticleKind
from ..models.types import (
    ContentItem,
    ContentModel,
    ContentModelType,
    DeclaredContentType,
    ElementItem,
    GroupItem,
    TextItem,
)

_GROUP_TYPES = {
    ParticleKind.SEQUENCE: ContentModelType.SEQUENCE,
    ParticleKind.ALTERNATE: ContentModelType.CHOICE,
    ParticleKind.INTERLEAVE: ContentModelType.INTERLEAVE,
}

_DECLARED_TYPES = {
    ParticleKind.SEQUENCE: DeclaredContentType.SEQUENCE,
    ParticleKind.ALTERNATE: DeclaredContentType.CHOICE,
    ParticleKind.INTERLEAVE: DeclaredContentType.INTERLEAVE,
    ParticleKind.TEXT_NODE: DeclaredContentType.MIXED,
    ParticleKind.EMPTY: DeclaredContentType.EMPTY,
}


def empty_model() -> ContentModel:
    """Model of an element that declares no particles at all."""
    return ContentModel(type=ContentModelType.EMPTY, min_occurs=0, max_occurs=1)


class ContentModelCompiler:
    """
    Compiles particle trees against one corpus index.

    Macro cycles are cut with a visited set that is copied for every
    expansion, so one branch never hides a macro from its siblings.
    """

    def __init__(self, index: CorpusIndex):
        self.index = index

    def compile(
        self,
        particles: Optional[Sequence[Particle]],
        visited: FrozenSet[str] = frozenset()
    ) -> Optional[ContentModel]:
        """
        Compile a top-level particle list.

        Args:
            particles: Element or macro content
            visited: Macro names already expanded on this path

        Returns:
            Optional[ContentModel]: empty (0,1) for no particles; None when
            the particles compile to nothing
        """
        if not particles:
            return empty_model()

        if len(particles) == 1:
            return self._to_model(particles[0], visited)

        items = self._to_items(particles, visited)
        if not items:
            return None

        return ContentModel(type=ContentModelType.SEQUENCE, items=tuple(items))

    def _to_items(self, particles: Sequence[Particle], visited: FrozenSet[str]) -> List[ContentItem]:
        items = []
        for particle in particles:
            item = self._to_item(particle, visited)
            if item is not None:
                items.append(item)
        return items

    def _class_choice(self, particle: Particle, min_occurs: int, max_occurs) -> Optional[ContentModel]:
        members = self.index.members_of(particle.key) if particle.key else []
        if not members:
            return None
        return ContentModel(
            type=ContentModelType.CHOICE,
            items=tuple(ElementItem(name=m) for m in members),
            min_occurs=min_occurs,
            max_occurs=max_occurs,
        )

    def _expand_macro(self, particle: Particle, visited: FrozenSet[str]) -> Optional[ContentModel]:
        if not particle.key or particle.key in visited:
            return None
        macro = self.index.macros.get(particle.key)
        if macro is None or macro.content is None:
            return None
        return self.compile(macro.content, visited | {particle.key})

    def _to_model(self, particle: Particle, visited: FrozenSet[str]) -> Optional[ContentModel]:
        """Convert a single particle to a ContentModel."""
        kind = particle.kind
        min_occurs, max_occurs = particle.min_occurs, particle.max_occurs

        if kind in _GROUP_TYPES:
            return ContentModel(
                type=_GROUP_TYPES[kind],
                items=tuple(self._to_items(particle.content, visited)),
                min_occurs=min_occurs,
                max_occurs=max_occurs,
            )

        elif kind == ParticleKind.EMPTY:
            return ContentModel(type=ContentModelType.EMPTY, min_occurs=0, max_occurs=0)

        elif kind == ParticleKind.TEXT_NODE:
            return ContentModel(type=ContentModelType.TEXT, min_occurs=min_occurs, max_occurs=max_occurs)

        elif kind == ParticleKind.ELEMENT_REF:
            if not particle.key:
                return None
            return ContentModel(
                type=ContentModelType.ELEMENT,
                items=(ElementItem(particle.key, min_occurs, max_occurs),),
                min_occurs=min_occurs,
                max_occurs=max_occurs,
            )

        elif kind == ParticleKind.CLASS_REF:
            return self._class_choice(particle, min_occurs, max_occurs)

        elif kind == ParticleKind.MACRO_REF:
            expanded = self._expand_macro(particle, visited)
            if expanded is None:
                return None
            # the reference's bounds replace the macro's own
            return replace(expanded, min_occurs=min_occurs, max_occurs=max_occurs)

        elif kind == ParticleKind.UNSUPPORTED:
            return None

        raise TypeError(f"Unhandled particle kind: {kind}")

    def _to_item(self, particle: Particle, visited: FrozenSet[str]) -> Optional[ContentItem]:
        """Convert a particle to a ContentItem inside a parent model."""
        kind = particle.kind
        min_occurs, max_occurs = particle.min_occurs, particle.max_occurs

        if kind == ParticleKind.ELEMENT_REF:
            return ElementItem(particle.key, min_occurs, max_occurs) if particle.key else None

        elif kind == ParticleKind.CLASS_REF:
            choice = self._class_choice(particle, 1, 1)
            return GroupItem(choice, min_occurs, max_occurs) if choice else None

        elif kind == ParticleKind.MACRO_REF:
            expanded = self._expand_macro(particle, visited)
            if expanded is None or expanded.type == ContentModelType.EMPTY:
                return None
            return GroupItem(expanded, min_occurs, max_occurs)

        elif kind in _GROUP_TYPES:
            return GroupItem(self._to_model(particle, visited), min_occurs, max_occurs)

        elif kind == ParticleKind.TEXT_NODE:
            return TextItem(min_occurs, max_occurs)

        elif kind in (ParticleKind.EMPTY, ParticleKind.UNSUPPORTED):
            return None

        raise TypeError(f"Unhandled particle kind: {kind}")


def declared_content_type(particles: Optional[Sequence[Particle]]) -> Optional[DeclaredContentType]:
    """Coarse content shape from the first telling particle."""
    if not particles:
        return DeclaredContentType.EMPTY

    for particle in particles:
        if particle.kind in _DECLARED_TYPES:
            return _DECLARED_TYPES[particle.kind]

    for particle in particles:
        if particle.content:
            nested = declared_content_type(particle.content)
            if nested and nested != DeclaredContentType.EMPTY:
                return nested

    return None
