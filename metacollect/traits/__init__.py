"""
metacollect.traits: operator-trait catalog and trait resolution.

Modules:
  - catalog: operator traits, operand policies, per-operator candidate lists
  - resolver: TraitResolver (first match wins) and NullResolver
  - impl_index: ImplIndex registry and ImplIndexResolver
  - prelude: core-library operator impls for primitive types
"""

__all__ = [
    "catalog",
    "resolver",
    "impl_index",
    "prelude",
]
