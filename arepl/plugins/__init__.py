#!/usr/bin/env python3
# arepl/plugins/__init__.py
from __future__ import annotations
"""Demo command set loaded by `python -m arepl`."""
