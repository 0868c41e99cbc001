"""
Alert headers for entity mutations.

Clients read ``X-<app>-alert`` / ``X-<app>-params`` to show notifications
after a create, update or delete, and ``X-<app>-error`` after a rejected
request. ``<app>`` is the deploying client application name.

With translation enabled the alert carries a message key
(``<app>.<entity>.created``); otherwise a plain English message.
"""

from typing import Dict


def create_alert(application_name: str, message: str, param: str) -> Dict[str, str]:
    """Build the alert header pair."""
    return {
        f"X-{application_name}-alert": message,
        f"X-{application_name}-params": param,
    }


def create_entity_creation_alert(
    application_name: str,
    enable_translation: bool,
    entity_name: str,
    param: str
) -> Dict[str, str]:
    message = (
        f"{application_name}.{entity_name}.created"
        if enable_translation
        else f"A new {entity_name} is created with identifier {param}"
    )
    return create_alert(application_name, message, param)


def create_entity_update_alert(
    application_name: str,
    enable_translation: bool,
    entity_name: str,
    param: str
) -> Dict[str, str]:
    message = (
        f"{application_name}.{entity_name}.updated"
        if enable_translation
        else f"A {entity_name} is updated with identifier {param}"
    )
    return create_alert(application_name, message, param)


def create_entity_deletion_alert(
    application_name: str,
    enable_translation: bool,
    entity_name: str,
    param: str
) -> Dict[str, str]:
    message = (
        f"{application_name}.{entity_name}.deleted"
        if enable_translation
        else f"A {entity_name} is deleted with identifier {param}"
    )
    return create_alert(application_name, message, param)


def create_failure_alert(
    application_name: str,
    entity_name: str,
    error_key: str
) -> Dict[str, str]:
    """Build the error header pair for a rejected entity request."""
    return {
        f"X-{application_name}-error": f"error.{error_key}",
        f"X-{application_name}-params": entity_name,
    }
