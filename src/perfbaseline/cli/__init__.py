"""perfbaseline CLI package."""

from __future__ import annotations

from ._app import app as app  # noqa: F401
from ._app import console as console  # noqa: F401


def _register_commands() -> None:
    """Register command modules in help-panel order.

    The import order determines the panel order shown by ``perfbaseline --help``.
    """
    # isort: off
    from . import _update  # noqa: F401  Baselines
    from . import _inspect  # noqa: F401  Baselines / Regression Checks
    from . import _check  # noqa: F401  Regression Checks
    # isort: on


_register_commands()
