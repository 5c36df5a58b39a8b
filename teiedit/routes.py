"""HTTP routes for schema queries and document validation."""
from flask import Blueprint, current_app, jsonify, request

from .schema.attributes import get_element_attributes
from .schema.models.types import RngParseError, SchemaNotFoundError
from .schema.schema_detector import analyze_schema_declarations, detect_schema_declarations
from .schema.schema_manager import get_schema_stats
from .schema.validators import validate_document

api_bp = Blueprint('api', __name__, url_prefix='/api')


def _attr_to_dict(attr):
    return {
        'name': attr.name,
        'required': attr.required,
        'values': list(attr.values) if attr.values else None,
        'suggestedValues': list(attr.suggested_values) if attr.suggested_values else None,
        'defaultValue': attr.default_value,
        'datatype': attr.datatype,
        'documentation': attr.documentation,
    }


@api_bp.route('/schemas', methods=['GET'])
def list_schemas():
    """List built-in and imported schemas."""
    return jsonify({'schemas': current_app.config['SCHEMA_MANAGER'].list_schemas()})


@api_bp.route('/schemas/rng', methods=['POST'])
def import_rng():
    """Import a RELAX NG grammar as a custom schema."""
    payload = request.get_json(silent=True)
    if not payload or 'rng' not in payload or 'name' not in payload:
        return jsonify({'error': 'Missing required fields'}), 400

    try:
        schema = current_app.config['SCHEMA_MANAGER'].load_custom_rng(payload['rng'], payload['name'])
        return jsonify({'id': schema.schema_id, 'name': schema.name, 'stats': get_schema_stats(schema)})
    except RngParseError as e:
        return jsonify({'error': e.message}), 400
    except Exception as e:
        current_app.config['LOGGER'].error(f"Error importing RELAX NG schema: {str(e)}")
        return jsonify({'error': str(e)}), 500


@api_bp.route('/schemas/<schema_id>/elements/<element_name>/attributes', methods=['GET'])
def element_attributes(schema_id: str, element_name: str):
    """Effective attributes of one element."""
    try:
        schema = current_app.config['SCHEMA_MANAGER'].get(schema_id)
        if schema.get_element(element_name) is None:
            return jsonify({'error': f'Unknown element: {element_name}'}), 404
        return jsonify({
            'element': element_name,
            'attributes': [_attr_to_dict(a) for a in get_element_attributes(schema, element_name)],
        })
    except SchemaNotFoundError as e:
        return jsonify({'error': e.message}), 404
    except Exception as e:
        current_app.config['LOGGER'].error(f"Error resolving attributes for {element_name}: {str(e)}")
        return jsonify({'error': str(e)}), 500


@api_bp.route('/validate', methods=['POST'])
def validate():
    """Validate a document snapshot against a schema."""
    payload = request.get_json(silent=True)
    if not payload or not isinstance(payload.get('text'), str):
        return jsonify({'error': 'Missing required fields'}), 400

    tei_config = current_app.config['TEI_CONFIG']
    schema_id = payload.get('schema') or tei_config.schema.default_schema
    try:
        schema = current_app.config['SCHEMA_MANAGER'].get(schema_id)
        diagnostics = validate_document(payload['text'], schema, tei_config.validator)
        return jsonify({
            'schema': schema.schema_id,
            'diagnostics': [d.to_dict() for d in diagnostics],
        })
    except SchemaNotFoundError as e:
        return jsonify({'error': e.message}), 404
    except Exception as e:
        current_app.config['LOGGER'].error(f"Error validating document: {str(e)}")
        return jsonify({'error': str(e)}), 500


@api_bp.route('/detect', methods=['POST'])
def detect():
    """Report schema declarations found in a document."""
    payload = request.get_json(silent=True)
    if not payload or not isinstance(payload.get('text'), str):
        return jsonify({'error': 'Missing required fields'}), 400

    declarations = detect_schema_declarations(payload['text'])
    analysis = analyze_schema_declarations(declarations)
    return jsonify({
        'declarations': [d.to_dict() for d in declarations],
        'warnings': analysis.warnings,
        'hasUnsupportedFormat': analysis.has_unsupported_format,
    })


def init_app(app):
    """Register API routes."""
    app.register_blueprint(api_bp)
