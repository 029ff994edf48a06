#!/usr/bin/env python3
# arepl/boot/__init__.py
from __future__ import annotations
"""
Boot sequence package.

Exports:
- boot_repl: Orchestrated startup pipeline with [ OK ] / [FAILED] lines.
- BootState: Dataclass containing config, logger, registry, engines, frontend
  and the dispatch loop.
"""


from .boot import BootState, boot_repl

__all__ = ["boot_repl", "BootState"]
