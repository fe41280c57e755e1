# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Item half of the program model: modules, data types, functions, impls, traits.

Guiding rules:
- Items appear in source order; the pass emits records in that order.
- Declared field types are kept as written (aliases and generics unresolved).
- Impl blocks are unnamed; `impl_segment()` gives the path segment they
  contribute so method paths are stable across the pass and the resolver.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from metacollect.core.span import Span
from metacollect.model.exprs import Block, Param
from metacollect.model.types import TyPath, TypeShape


class FieldsKind(Enum):
	"""Shape of a struct body or enum variant payload."""

	NAMED = "named"  # { a: A, b: B }
	TUPLE = "tuple"  # (A, B)
	UNIT = "unit"


@dataclass
class FieldDef:
	"""One declared field; tuple fields have no name."""

	ty: TypeShape
	name: Optional[str] = None
	span: Span = field(default_factory=Span)


@dataclass
class Generics:
	"""
	Generic parameter names; recorded but never substituted. `bounds` holds
	the trait bounds of type parameters (`T: Ord` is `("T", Ord)`), in order.
	"""

	types: List[str] = field(default_factory=list)
	lifetimes: List[str] = field(default_factory=list)
	consts: List[str] = field(default_factory=list)
	bounds: List[Tuple[str, TyPath]] = field(default_factory=list)

	def param_names(self) -> frozenset[str]:
		return frozenset(self.types) | frozenset(self.consts)


@dataclass
class VariantDef:
	name: str
	kind: FieldsKind = FieldsKind.UNIT
	fields: List[FieldDef] = field(default_factory=list)
	span: Span = field(default_factory=Span)


@dataclass
class StructDef:
	name: str
	kind: FieldsKind = FieldsKind.NAMED
	fields: List[FieldDef] = field(default_factory=list)
	generics: Generics = field(default_factory=Generics)
	span: Span = field(default_factory=Span)


@dataclass
class UnionDef:
	name: str
	fields: List[FieldDef] = field(default_factory=list)
	generics: Generics = field(default_factory=Generics)
	span: Span = field(default_factory=Span)


@dataclass
class EnumDef:
	name: str
	variants: List[VariantDef] = field(default_factory=list)
	generics: Generics = field(default_factory=Generics)
	span: Span = field(default_factory=Span)


@dataclass
class FunctionDef:
	"""Free function, method, or trait method (body None for required methods)."""

	name: str
	params: List[Param] = field(default_factory=list)
	ret: Optional[TypeShape] = None
	body: Optional[Block] = None
	generics: Generics = field(default_factory=Generics)
	span: Span = field(default_factory=Span)


@dataclass
class ImplDef:
	"""
	`impl<G> Trait<Args> for SelfTy { ... }` or inherent `impl<G> SelfTy { ... }`.

	`trait` is the fully-qualified trait path as resolved by the front-end.
	"""

	self_ty: TypeShape
	trait: Optional[TyPath] = None
	items: List["Item"] = field(default_factory=list)
	generics: Generics = field(default_factory=Generics)
	span: Span = field(default_factory=Span)


@dataclass
class TraitDef:
	name: str
	items: List["Item"] = field(default_factory=list)
	generics: Generics = field(default_factory=Generics)
	span: Span = field(default_factory=Span)


@dataclass
class ModuleDef:
	name: str
	items: List["Item"] = field(default_factory=list)
	span: Span = field(default_factory=Span)


@dataclass
class OtherItem:
	"""Named item with nothing to collect (const, static, use, type alias, ...)."""

	name: str
	kind: str
	span: Span = field(default_factory=Span)


Item = Union[ModuleDef, StructDef, UnionDef, EnumDef, FunctionDef, ImplDef, TraitDef, OtherItem]


@dataclass
class Program:
	"""A whole type-checked program; `crate` is the root path segment."""

	crate: str
	items: List[Item] = field(default_factory=list)


def impl_segment(impl: ImplDef) -> str:
	"""Path segment for an impl block: `<Self as Trait>` or the self type."""
	if impl.trait is not None:
		return f"<{impl.self_ty} as {impl.trait}>"
	return str(impl.self_ty)


def item_segment(item: Item) -> str:
	if isinstance(item, ImplDef):
		return impl_segment(item)
	return item.name


def count_fields(item: Union[StructDef, UnionDef, EnumDef]) -> int:
	if isinstance(item, EnumDef):
		return sum(len(v.fields) for v in item.variants)
	return len(item.fields)


def walk_items(items: List[Item], prefix: Tuple[str, ...]) -> List[Tuple[Tuple[str, ...], Item]]:
	"""
	Flatten module-level items with the path of their parent.

	Descends into modules, impls and traits; items nested inside function
	bodies are not included.
	"""
	out: List[Tuple[Tuple[str, ...], Item]] = []
	for item in items:
		out.append((prefix, item))
		if isinstance(item, (ModuleDef, ImplDef, TraitDef)):
			out.extend(walk_items(item.items, prefix + (item_segment(item),)))
	return out


__all__ = [
	"FieldsKind",
	"FieldDef",
	"Generics",
	"VariantDef",
	"StructDef",
	"UnionDef",
	"EnumDef",
	"FunctionDef",
	"ImplDef",
	"TraitDef",
	"ModuleDef",
	"OtherItem",
	"Item",
	"Program",
	"impl_segment",
	"item_segment",
	"count_fields",
	"walk_items",
]
