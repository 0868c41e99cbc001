"""
Unit tests for entity alert headers.

Tests cover:
- Creation, update and deletion alerts (message and translation-key forms)
- Failure alerts for rejected requests
"""

from resource_api.src.utils.headers import (
    create_alert,
    create_entity_creation_alert,
    create_entity_deletion_alert,
    create_entity_update_alert,
    create_failure_alert,
)


APP = "icamApi"
ENTITY = "icamApiCategoryTree"


class TestEntityAlerts:
    """Tests for mutation alert headers."""

    def test_alert_header_names_use_application_name(self):
        headers = create_alert(APP, "message", "42")

        assert headers == {"X-icamApi-alert": "message", "X-icamApi-params": "42"}

    def test_creation_alert_message(self):
        headers = create_entity_creation_alert(APP, False, ENTITY, "7")

        assert headers["X-icamApi-alert"] == "A new icamApiCategoryTree is created with identifier 7"
        assert headers["X-icamApi-params"] == "7"

    def test_update_alert_message(self):
        headers = create_entity_update_alert(APP, False, ENTITY, "7")

        assert headers["X-icamApi-alert"] == "A icamApiCategoryTree is updated with identifier 7"

    def test_deletion_alert_message(self):
        headers = create_entity_deletion_alert(APP, False, ENTITY, "7")

        assert headers["X-icamApi-alert"] == "A icamApiCategoryTree is deleted with identifier 7"

    def test_translation_keys(self):
        assert create_entity_creation_alert(APP, True, ENTITY, "1")["X-icamApi-alert"] == (
            "icamApi.icamApiCategoryTree.created"
        )
        assert create_entity_update_alert(APP, True, ENTITY, "1")["X-icamApi-alert"] == (
            "icamApi.icamApiCategoryTree.updated"
        )
        assert create_entity_deletion_alert(APP, True, ENTITY, "1")["X-icamApi-alert"] == (
            "icamApi.icamApiCategoryTree.deleted"
        )


class TestFailureAlert:
    """Tests for failure alert headers."""

    def test_failure_alert(self):
        headers = create_failure_alert(APP, ENTITY, "idexists")

        assert headers == {
            "X-icamApi-error": "error.idexists",
            "X-icamApi-params": ENTITY,
        }
