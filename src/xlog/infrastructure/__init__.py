"""Infrastructure layer — database engine, persistence gateway, migrations.

This layer depends on stdlib, the domain models, and third-party libs
(SQLAlchemy, Alembic). It must never import from services, commands,
or output.
"""
