"""
Error taxonomy for entity resources.

- ``BadRequestAlertError``: request rejected before any store interaction
  (``idexists``, ``idnull``). Rendered as 400 with an alert error body.
- ``StoreError``: failure raised by an entity store. Never retried here;
  rendered with the status the store attached (500 by default).
"""

from typing import Optional

from resource_api.src.models.errors import AlertErrorResponse


class ResourceError(Exception):
    """Base class for errors raised by the resource layer."""

    status_code: int = 500


class BadRequestAlertError(ResourceError):
    """Client error tied to an entity, rendered with failure alert headers."""

    status_code = 400

    def __init__(self, title: str, entity_name: str, error_key: str):
        super().__init__(title)
        self.title = title
        self.entity_name = entity_name
        self.error_key = error_key

    @property
    def message(self) -> str:
        return f"error.{self.error_key}"

    def to_response(self) -> AlertErrorResponse:
        return AlertErrorResponse(
            entity_name=self.entity_name,
            error_key=self.error_key,
            message=self.message,
            title=self.title,
            status=self.status_code,
        )


class StoreError(ResourceError):
    """Failure reported by an entity store."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
