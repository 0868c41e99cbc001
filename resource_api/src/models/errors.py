"""Error response schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AlertErrorResponse(BaseModel):
    """Structured body returned for rejected entity requests (400)."""

    entity_name: str = Field(..., alias="entityName", description="Entity the request targeted")
    error_key: str = Field(..., alias="errorKey", description="Machine-readable error key")
    message: str = Field(..., description="Message key, e.g. error.idexists")
    title: Optional[str] = Field(None, description="Human-readable description")
    status: int = Field(400, description="HTTP status code")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "entityName": "icamApiCategoryTree",
                "errorKey": "idexists",
                "message": "error.idexists",
                "title": "A new categoryTree cannot already have an ID",
                "status": 400
            }
        }
    )

