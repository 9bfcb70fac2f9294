# Overview: Access to the application's EntityStore from request and CLI code.

from flask import current_app

from .services.entity_store import EntityStore


STORE_EXTENSION_KEY = "entity_store"


def init_store(app, session) -> EntityStore:
    """Build the app's store over session and register it on the app."""
    store = EntityStore(session, number_year=app.config.get("WORK_ORDER_NUMBER_YEAR"))
    app.extensions[STORE_EXTENSION_KEY] = store
    return store


def get_store() -> EntityStore:
    """The store of the current application (requires an app context)."""
    return current_app.extensions[STORE_EXTENSION_KEY]
