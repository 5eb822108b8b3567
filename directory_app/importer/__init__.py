"""
Directory importer package.

Provides conditional blueprint and CLI registration so the importer stays out
of the way when ``IMPORTER_ENABLED`` is false.
"""

from __future__ import annotations

from flask import Flask

from directory_app.utils.importer import get_allowed_extensions, is_importer_enabled

from .cli import get_disabled_importer_group, importer_cli
from .service import DirectoryImportService, ImportPreview, ImportRunResult
from .views import importer_blueprint

IMPORTER_EXTENSION_KEY = "importer"

__all__ = [
    "init_importer",
    "IMPORTER_EXTENSION_KEY",
    "DirectoryImportService",
    "ImportPreview",
    "ImportRunResult",
]


def _set_cli(app: Flask, enabled: bool) -> None:
    """Register the appropriate CLI group based on flag state."""
    command_name = importer_cli.name
    if command_name in app.cli.commands:
        app.cli.commands.pop(command_name)

    if enabled:
        app.cli.add_command(importer_cli)
    else:
        app.cli.add_command(get_disabled_importer_group())


def init_importer(app: Flask) -> None:
    """
    Conditionally mount the importer blueprint and CLI based on configuration.

    Records importer state inside ``app.extensions['importer']``.
    """
    enabled = is_importer_enabled(app)
    state = app.extensions.setdefault(IMPORTER_EXTENSION_KEY, {})
    state.update({"enabled": enabled, "allowed_extensions": get_allowed_extensions(app)})

    if not enabled:
        _set_cli(app, enabled=False)
        app.logger.info("Importer disabled via IMPORTER_ENABLED flag; skipping registration.")
        return

    if importer_blueprint.name not in app.blueprints:
        app.register_blueprint(importer_blueprint)
    _set_cli(app, enabled=True)
    app.logger.info("Importer enabled for extensions: %s", ", ".join(state["allowed_extensions"]))
