"""API routers.

``EntityResource`` builds the CRUD router for one entity type.
"""

from resource_api.src.routers.entity_resource import EntityResource

__all__ = ["EntityResource"]
