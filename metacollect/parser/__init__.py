"""
metacollect.parser: program-model input.

Modules:
  - type_parser: lark-based parser for Rust-like type expressions
  - model_loader: JSON program-model loader producing metacollect.model trees
"""

from .model_loader import ModelLoader, load_program
from .type_parser import parse_trait_ref, parse_type

__all__ = [
    "ModelLoader",
    "load_program",
    "parse_type",
    "parse_trait_ref",
]
