# teiedit/schema/validators/__init__.py
from .content_model_validator import ChildRef, get_required_children, validate_content_model
from .lexer import TagKind, TagLexer, TagToken, parse_attributes
from .structure_validator import StructureValidator, check_structure, validate_document
from .well_formedness import check_well_formedness

__all__ = [
    'ChildRef',
    'StructureValidator',
    'TagKind',
    'TagLexer',
    'TagToken',
    'check_structure',
    'check_well_formedness',
    'get_required_children',
    'parse_attributes',
    'validate_content_model',
    'validate_document',
]
