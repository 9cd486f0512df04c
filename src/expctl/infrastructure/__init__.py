"""Infrastructure layer — database, migrations, workspace repository.

This layer depends on stdlib, third-party libs (SQLAlchemy, Alembic) and
the domain models it hydrates. It must never import from services,
commands, or output.
"""
