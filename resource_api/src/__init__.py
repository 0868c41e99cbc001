"""FastAPI service exposing CRUD resources for identifiable entities.

This package provides generic REST endpoints that create, update, list,
fetch and delete entities through a pluggable entity store.
"""

__version__ = "1.0.0"
