# teiedit/schema/__init__.py
from .attributes import AttributeResolver, get_element_attributes
from .schema_manager import SchemaManager, get_schema_stats
from .serialization import dump_schema, load_schema, read_schema, save_schema

__all__ = [
    'AttributeResolver',
    'SchemaManager',
    'dump_schema',
    'get_element_attributes',
    'get_schema_stats',
    'load_schema',
    'read_schema',
    'save_schema',
]
