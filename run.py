from teiedit import create_app

app = create_app()

if __name__ == '__main__':
    # Compile or read the default schema before the first request
    tei_config = app.config['TEI_CONFIG']
    app.config['SCHEMA_MANAGER'].get(tei_config.schema.default_schema)
    app.run(debug=True, port=5001)
