"""Compilation of an ingested corpus into a SchemaInfo."""
from typing import Any, Dict, Mapping, Optional

from ..corpus.ingest import CorpusIndex, ingest_corpus
from ..models.types import ElementSpec, ProcessingPhase, SchemaInfo
from ..utils.logger import SchemaLogger, log_processing_phase
from .content_model import ContentModelCompiler, declared_content_type


class SchemaCompiler:
    """Runs ingestion and content model compilation for one schema."""

    def __init__(
        self,
        schema_id: str = "tei_all",
        name: str = "TEI All",
        logger: Optional[SchemaLogger] = None
    ):
        self.schema_id = schema_id
        self.name = name
        self.logger = logger or SchemaLogger(__name__)

    @log_processing_phase(ProcessingPhase.INGESTION)
    def ingest(self, corpus: Mapping[str, Any]) -> CorpusIndex:
        return ingest_corpus(corpus)

    @log_processing_phase(ProcessingPhase.COMPILATION)
    def build(self, index: CorpusIndex) -> SchemaInfo:
        """
        Build the compiled schema from corpus indices.

        Args:
            index: Output of ingestion

        Returns:
            SchemaInfo: Elements with content models and the attribute maps
        """
        compiler = ContentModelCompiler(index)
        elements: Dict[str, ElementSpec] = {}

        for name, definition in index.elements.items():
            elements[name] = ElementSpec(
                name=name,
                documentation=definition.documentation,
                attr_classes=definition.attr_classes,
                model_classes=definition.model_classes,
                local_attrs=definition.local_attrs,
                content_model_type=declared_content_type(definition.content),
                content_model=compiler.compile(definition.content),
            )

        schema = SchemaInfo(
            schema_id=self.schema_id,
            name=self.name,
            elements=elements,
            attribute_classes={
                cls.name: cls.attrs for cls in index.attribute_classes.values()
            },
            attribute_class_inheritance={
                cls.name: cls.inherits for cls in index.attribute_classes.values()
            },
            element_attribute_classes={
                name: spec.attr_classes for name, spec in elements.items()
            },
        )

        self.logger.log_stats(f"Compiled {self.name}", {
            "Elements": len(elements),
            "With children": sum(1 for e in elements.values() if e.children),
            "Macros": len(index.macros),
            "Model classes": len(index.model_class_members),
            "Attribute classes": len(index.attribute_classes),
        })
        return schema

    def compile(self, corpus: Mapping[str, Any]) -> SchemaInfo:
        return self.build(self.ingest(corpus))


def compile_schema(
    corpus: Mapping[str, Any],
    schema_id: str = "tei_all",
    name: str = "TEI All",
    logger: Optional[SchemaLogger] = None
) -> SchemaInfo:
    """Compile a raw corpus mapping into a SchemaInfo."""
    return SchemaCompiler(schema_id, name, logger).compile(corpus)
