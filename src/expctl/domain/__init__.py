"""Domain layer — column schema, custom-field values, experiences, filters.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
