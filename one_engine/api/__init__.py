"""HTTP layer. Build the application with one_engine.api.app.create_app()."""
