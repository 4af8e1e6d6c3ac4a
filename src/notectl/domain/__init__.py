"""Domain layer — issue records, schema resolution, and pure helpers.

This layer depends only on stdlib, pydantic, and ruamel.yaml.
It must never import from services, infrastructure, commands, or config.
"""
