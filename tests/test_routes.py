import pytest

from teiedit import create_app
from teiedit.config import SchemaConfig
from teiedit.schema.schema_manager import SchemaManager


@pytest.fixture
def client(sample_schema, tmp_path):
    manager = SchemaManager(SchemaConfig(
        corpus_path=tmp_path / "absent.json",
        compiled_dir=tmp_path / "compiled",
    ))
    manager.register(sample_schema)
    app = create_app('development', schema_manager=manager)
    app.config['TESTING'] = True
    return app.test_client()


def test_list_schemas(client):
    response = client.get('/api/schemas')

    assert response.status_code == 200
    assert {"id": "mini", "name": "Mini TEI", "loaded": True} in response.get_json()['schemas']


def test_element_attributes(client):
    response = client.get('/api/schemas/mini/elements/hi/attributes')

    data = response.get_json()
    assert response.status_code == 200
    assert data['attributes'][0]['name'] == 'rend'
    assert data['attributes'][0]['values'] == ['bold', 'italic']


def test_element_attributes_not_found(client):
    assert client.get('/api/schemas/mini/elements/nonesuch/attributes').status_code == 404
    assert client.get('/api/schemas/nope/elements/p/attributes').status_code == 404


def test_validate(client):
    response = client.post('/api/validate', json={
        'schema': 'mini',
        'text': '<cit>\n<quote>a</quote>\n<q>b</q>\n</cit>',
    })

    data = response.get_json()
    assert response.status_code == 200
    assert data['schema'] == 'mini'
    assert [d['code'] for d in data['diagnostics']] == ['choice_violation']
    assert data['diagnostics'][0]['line'] == 3


def test_validate_requires_text(client):
    assert client.post('/api/validate', json={'schema': 'mini'}).status_code == 400


def test_validate_unknown_schema(client):
    response = client.post('/api/validate', json={'schema': 'nope', 'text': '<p/>'})

    assert response.status_code == 404
    assert response.get_json()['error'] == 'Unknown schema: nope'


def test_import_rng(client):
    response = client.post('/api/schemas/rng', json={
        'name': 'memo',
        'rng': '<element xmlns="http://relaxng.org/ns/structure/1.0" name="memo"><text/></element>',
    })

    assert response.status_code == 200
    assert response.get_json()['id'] == 'custom_memo'
    assert response.get_json()['stats']['elements'] == 1


def test_import_rng_errors(client):
    assert client.post('/api/schemas/rng', json={'name': 'x'}).status_code == 400

    response = client.post('/api/schemas/rng', json={'name': 'x', 'rng': '<grammar'})
    assert response.status_code == 400
    assert 'RNG parse error' in response.get_json()['error']


def test_detect(client):
    response = client.post('/api/detect', json={'text': '<!DOCTYPE TEI SYSTEM "tei.dtd">\n<TEI/>'})

    data = response.get_json()
    assert data['hasUnsupportedFormat'] is True
    assert data['declarations'][0]['format'] == 'dtd'
