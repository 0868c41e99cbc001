"""
Entity models exposed through resource endpoints.

Every resource entity is a pydantic model carrying an optional integer ``id``
(null until the store assigns one) and any number of additional fields. The
resource layer only ever looks at ``id``; everything else passes through to
the store untouched.
"""

from typing import Optional, Set

from pydantic import BaseModel, ConfigDict, Field


class EntityModel(BaseModel):
    """
    Base class for identifiable entities.

    Extra fields are accepted and preserved so that entity payloads remain
    opaque to the resource and store layers.
    """

    id: Optional[int] = Field(
        None,
        description="Store-assigned identifier; null before creation"
    )

    model_config = ConfigDict(extra="allow")

    @classmethod
    def sortable_properties(cls) -> Set[str]:
        """Declared field names that can be used in sort orders."""
        return set(cls.model_fields)

    def document(self) -> dict:
        """Return the JSON-compatible payload without the identifier."""
        return self.model_dump(mode="json", exclude={"id"})


class CategoryTree(EntityModel):
    """Category tree node managed through /category-trees."""

    name: Optional[str] = Field(
        None,
        description="Display name of the category tree"
    )

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Health services"
            }
        }
    )
