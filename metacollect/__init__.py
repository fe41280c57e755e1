# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
metacollect: field-type and call-target metadata collection.

The pass walks a type-checked program model and emits two record streams:
field shapes per data type and resolved call targets per function. The CLI
entrypoint is `metacollect.driver:main`.
"""

__all__ = []
