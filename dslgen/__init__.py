"""
dslgen package

This package generates fluent builder DSL sources for domain record types.

Key responsibilities are split across modules:
- `spec_parser.py`: parse a domain document into domain models
- `resolver.py` / `schema.py`: classify each property into a builder strategy
- `ir.py` / `typenames.py`: the code IR and its builders
- `builder_generator.py`, `groups.py`, `root_generator.py`: IR construction
- `generator.py`: one generation pass over all domains
- `renderer.py`: deterministic Kotlin rendering into an output directory
- `cli.py`: CLI entrypoint and orchestration (parse -> generate -> render)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
