"""
Contact importer package.

Exposes the batch coordinator and registers the ``flask contacts`` CLI group.
"""

from __future__ import annotations

from flask import Flask

from .cli import contacts_cli
from .pipeline import ImportReport, ImportRequestError, import_contacts

IMPORTER_EXTENSION_KEY = "importer"

__all__ = [
    "init_importer",
    "IMPORTER_EXTENSION_KEY",
    "ImportReport",
    "ImportRequestError",
    "import_contacts",
]


def init_importer(app: Flask) -> None:
    """Register the importer CLI and record importer settings in ``app.extensions``."""
    state = app.extensions.setdefault(IMPORTER_EXTENSION_KEY, {})
    state.update(
        {
            "placeholder_organization_id": app.config.get("IMPORTER_PLACEHOLDER_ORG_ID"),
            "batch_size": app.config.get("IMPORTER_BATCH_SIZE"),
            "max_contacts": app.config.get("IMPORTER_MAX_CONTACTS"),
        }
    )
    if "contacts" not in app.cli.commands:
        app.cli.add_command(contacts_cli)
    app.logger.debug("Contact importer registered (batch_size=%s)", state["batch_size"])
