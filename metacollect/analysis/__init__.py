"""
metacollect.analysis: the collection pass.

Modules:
  - classifier: maps expressions to call-shaped operations and trait candidates
  - decl_walker: field-type records for structs, unions and enums
  - body_walker: call records for function bodies (explicit work stack)
  - collector: the Metacollect pass driving both walkers over a Program
"""

from .collector import Metacollect

__all__ = [
    "Metacollect",
    "classifier",
    "decl_walker",
    "body_walker",
    "collector",
]
