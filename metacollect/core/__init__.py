"""
metacollect.core: spans, diagnostics, errors and item-path bookkeeping.

Modules:
  - span: best-effort model locations
  - diagnostics: Diagnostic record printed by the driver
  - errors: InternalConsistencyError (fatal) and user-facing model errors
  - paths: QualifiedPath, PathStack, VisitContext
"""

__all__ = [
    "span",
    "diagnostics",
    "errors",
    "paths",
]
