# src/orchestration/commands/__init__.py

"""
Built-in command handlers.

Importing this package ensures that all @command decorators run and the
default command table is complete.
"""

from .registry import (  # noqa: F401
    CommandCall,
    CommandRegistry,
    CommandSpec,
    CommandUsageError,
    build_default_registry,
    command,
)
from . import movement  # noqa: F401
from . import combat  # noqa: F401
from . import gathering  # noqa: F401
from . import navigation  # noqa: F401
from . import general  # noqa: F401
from . import admin  # noqa: F401
from . import ai  # noqa: F401
