"""
metacollect.model: typed program model consumed by the collection pass.

Modules:
  - types: type shapes (declared field types and resolved expression types)
  - exprs: typed function-body trees
  - items: modules, data types, functions, impls, traits, Program
"""

__all__ = [
    "types",
    "exprs",
    "items",
]
