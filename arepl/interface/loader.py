#!/usr/bin/env python3
# arepl/interface/loader.py
from __future__ import annotations

"""
Dynamic command loader.

Features:
- Imports all modules under a given package (default: 'arepl.plugins').
- Registers the COMMAND / COMMANDS exported by each module into the registry
  passed in (there is no process-wide registry).
- Supports 'entrypoint.py' inside a subpackage.
"""

import importlib
import logging
import pkgutil
from pathlib import Path
from types import ModuleType

from arepl.commands import Command, CommandRegistry

logger = logging.getLogger(__name__)


def _register_from_module(registry: CommandRegistry, module: ModuleType) -> int:
    """Register COMMAND/COMMANDS exported by a module, if present."""
    exported: list[object] = []
    if hasattr(module, "COMMAND"):
        exported.append(getattr(module, "COMMAND"))
    exported.extend(getattr(module, "COMMANDS", ()))

    registered_count = 0
    for item in exported:
        if isinstance(item, Command):
            registry.register(item)
            registered_count += 1
    return registered_count


def load_commands(registry: CommandRegistry, commands_package: str = "arepl.plugins") -> int:
    """
    Import all modules under the given package and register their commands.

    Supported layouts:
      1) Plain modules: plugins/foo.py  -> import plugins.foo
      2) Packages with an entrypoint: plugins/bar/entrypoint.py
         -> import plugins.bar.entrypoint

    Returns the number of commands registered. RegistrationError propagates.
    """
    package = importlib.import_module(commands_package)
    package_paths = [str(p) for p in getattr(package, "__path__", [])]

    if not package_paths:
        raise RuntimeError(
            f"'{commands_package}' must be a package (folder) with modules.")

    registered_count = 0
    for base_path in package_paths:
        for modinfo in sorted(pkgutil.iter_modules([base_path]), key=lambda m: m.name):
            module_name = modinfo.name
            if module_name.startswith("_"):
                # Ignore private modules
                continue

            target = f"{commands_package}.{module_name}"
            if modinfo.ispkg and (Path(base_path) / module_name / "entrypoint.py").exists():
                target = f"{target}.entrypoint"
            module = importlib.import_module(target)
            count = _register_from_module(registry, module)
            logger.debug("Loaded %d command(s) from %s", count, target)
            registered_count += count

    return registered_count
