"""Registry of compiled schemas."""
from typing import Any, Dict, List, Optional, Tuple

from ..config import SchemaConfig
from .compiler.rng_parser import parse_rng, schema_from_elements
from .compiler.schema_compiler import compile_schema
from .corpus.loader import load_corpus
from .models.types import SchemaInfo, SchemaNotFoundError
from .serialization import read_schema, save_schema
from .utils.logger import SchemaLogger

BUILTIN_SCHEMAS = {
    "tei_all": "TEI All",
}


class SchemaManager:
    """
    Loads and caches schemas by identifier.

    Built-in schemas come from a precompiled module in ``compiled_dir`` when
    one exists, otherwise from the configured corpus. Custom schemas are
    imported from RELAX NG text and cached as ``custom_<name>``.
    """

    def __init__(self, config: Optional[SchemaConfig] = None, logger: Optional[SchemaLogger] = None):
        self.config = config or SchemaConfig()
        self.logger = logger or SchemaLogger(__name__)
        self._schemas: Dict[str, SchemaInfo] = {}

    def register(self, schema: SchemaInfo) -> SchemaInfo:
        self._schemas[schema.schema_id] = schema
        self.logger.debug(f"Registered schema {schema.schema_id} ({len(schema.elements)} elements)")
        return schema

    def load_builtin(self, schema_id: str) -> SchemaInfo:
        """Load a built-in schema, compiling the corpus if no module is cached."""
        if schema_id in self._schemas:
            return self._schemas[schema_id]
        if schema_id not in BUILTIN_SCHEMAS:
            raise SchemaNotFoundError(schema_id)

        compiled_path = self.config.compiled_dir / f"{schema_id}.json"
        if compiled_path.exists():
            self.logger.info(f"Reading compiled schema {compiled_path}")
            schema = read_schema(compiled_path)
        else:
            corpus = load_corpus(self.config.corpus_path)
            schema = compile_schema(
                corpus,
                schema_id=schema_id,
                name=BUILTIN_SCHEMAS[schema_id],
                logger=self.logger,
            )
            save_schema(schema, compiled_path)
            self.logger.info(f"Cached compiled schema at {compiled_path}")

        return self.register(schema)

    def load_custom_rng(self, rng_text: str, name: str) -> SchemaInfo:
        """Import a RELAX NG grammar; repeated names return the cached schema."""
        schema_id = f"custom_{name}"
        if schema_id in self._schemas:
            return self._schemas[schema_id]

        schema = schema_from_elements(parse_rng(rng_text), schema_id, name)
        self.logger.info(f"Imported RELAX NG schema {name}: {len(schema.elements)} elements")
        return self.register(schema)

    def get(self, schema_id: str) -> SchemaInfo:
        if schema_id in self._schemas:
            return self._schemas[schema_id]
        if schema_id in BUILTIN_SCHEMAS:
            return self.load_builtin(schema_id)
        raise SchemaNotFoundError(schema_id)

    def list_schemas(self) -> List[Dict[str, Any]]:
        """Known schemas, loaded or not."""
        listed = [
            {"id": schema_id, "name": name, "loaded": schema_id in self._schemas}
            for schema_id, name in BUILTIN_SCHEMAS.items()
        ]
        listed.extend(
            {"id": schema.schema_id, "name": schema.name, "loaded": True}
            for schema in self._schemas.values()
            if schema.schema_id not in BUILTIN_SCHEMAS
        )
        return listed


def _top(counts: Dict[str, int], limit: int) -> List[Tuple[str, int]]:
    return sorted(counts.items(), key=lambda entry: (-entry[1], entry[0]))[:limit]


def get_schema_stats(schema: SchemaInfo, limit: int = 10) -> Dict[str, Any]:
    """Counts describing a compiled schema."""
    return {
        "elements": len(schema.elements),
        "attribute_classes": len(schema.attribute_classes),
        "attributes": sum(len(attrs) for attrs in schema.resolved_attributes.values()),
        "with_content_model": sum(1 for e in schema.elements.values() if e.content_model),
        "top_elements_by_children": _top(
            {name: len(spec.children) for name, spec in schema.elements.items()}, limit
        ),
        "top_attribute_classes": _top(
            {name: len(attrs) for name, attrs in schema.attribute_classes.items()}, limit
        ),
    }
