# teiedit/schema/compiler/__init__.py
from .content_model import ContentModelCompiler, declared_content_type
from .rng_parser import parse_rng, schema_from_elements
from .schema_compiler import SchemaCompiler, compile_schema

__all__ = [
    'ContentModelCompiler',
    'SchemaCompiler',
    'compile_schema',
    'declared_content_type',
    'parse_rng',
    'schema_from_elements',
]
