"""Storybook Illustrator — FastAPI REST API layer.

Modules
-------
main
    FastAPI application with all route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic response models and outcome serialisation.
validation
    Multipart form validation producing typed generation requests.
"""
