# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Operator-trait impls provided by the core library for primitive types.

Program models only contain the program's own impls; without these, `a + b`
on integers or `*r` on references would never resolve. Method paths use the
`<Self as Trait>::method` form since the impls live outside the program.

Notable shapes:
- floats implement PartialOrd but not Ord, so `<` on floats resolves through
  the fallback candidate;
- numeric operators also exist with reference operands (`&i32 + i32`,
  `i32 + &i32`, `&i32 + &i32`);
- `&T`/`&mut T` implement Deref, and comparisons on references forward
  through `impl<T: PartialEq> PartialEq for &T` (likewise PartialOrd and Ord),
  so `&f64 < &f64` still falls back to PartialOrd.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from metacollect.model.types import TyArray, TyPath, TyRef, TySlice, TyTuple, TypeShape, named
from metacollect.traits.catalog import CORE_CMP, CORE_OPS
from metacollect.traits.impl_index import ImplIndex, ImplMethodMeta

SIGNED_INTS = ("i8", "i16", "i32", "i64", "i128", "isize")
UNSIGNED_INTS = ("u8", "u16", "u32", "u64", "u128", "usize")
INTS = SIGNED_INTS + UNSIGNED_INTS
FLOATS = ("f32", "f64")

_ARITH = (("Add", "add"), ("Sub", "sub"), ("Mul", "mul"), ("Div", "div"), ("Rem", "rem"))
_BITS = (("BitAnd", "bitand"), ("BitOr", "bitor"), ("BitXor", "bitxor"))
_SHIFTS = (("Shl", "shl"), ("Shr", "shr"))

_T = named("T")


def _trait(module: str, name: str, args: Tuple[TypeShape, ...] = ()) -> TyPath:
	return TyPath(path=tuple(module.split("::")) + (name,), args=args)


def _add(
	index: ImplIndex,
	self_ty: TypeShape,
	trait: TyPath,
	methods: Iterable[str],
	params: Iterable[str] = (),
	bounds: Iterable[Tuple[str, str]] = (),
) -> None:
	seg = f"<{self_ty} as {trait}>"
	index.add_impl(
		self_ty=self_ty,
		trait=trait,
		params=params,
		bounds=bounds,
		methods=[ImplMethodMeta(name=m, path=f"{seg}::{m}") for m in methods],
	)


def _binary_with_refs(index: ImplIndex, ty: TypeShape, name: str, method: str) -> None:
	"""`T op T`, `&T op T`, `T op &T`, `&T op &T`, plus `T op= T` and `T op= &T`."""
	ref = TyRef(ty)
	_add(index, ty, _trait(CORE_OPS, name), [method])
	_add(index, ref, _trait(CORE_OPS, name, (ty,)), [method])
	_add(index, ty, _trait(CORE_OPS, name, (ref,)), [method])
	_add(index, ref, _trait(CORE_OPS, name, (ref,)), [method])
	_add(index, ty, _trait(CORE_OPS, f"{name}Assign"), [f"{method}_assign"])
	_add(index, ty, _trait(CORE_OPS, f"{name}Assign", (ref,)), [f"{method}_assign"])


def _comparisons(index: ImplIndex, ty: TypeShape, params: Iterable[str] = (), *, total: bool = True) -> None:
	"""
	PartialEq, PartialOrd and (if `total`) Ord for `ty`. A generic `ty` gets
	each impl bounded by the same trait on every parameter (`impl<T: Ord> Ord for &T`).
	"""
	params = tuple(params)
	traits = [("PartialEq", ["eq", "ne"]), ("PartialOrd", ["partial_cmp", "lt", "le", "gt", "ge"])]
	if total:
		traits.append(("Ord", ["cmp", "max", "min", "clamp"]))
	for name, methods in traits:
		trait = _trait(CORE_CMP, name)
		bounds = [(param, f"{CORE_CMP}::{name}") for param in params]
		_add(index, ty, trait, methods, params, bounds)


def install_prelude(index: ImplIndex) -> None:
	for name in INTS + FLOATS:
		ty = named(name)
		for trait, method in _ARITH:
			_binary_with_refs(index, ty, trait, method)
		_comparisons(index, ty, total=name in INTS)
		if name in SIGNED_INTS or name in FLOATS:
			_add(index, ty, _trait(CORE_OPS, "Neg"), ["neg"])
			_add(index, TyRef(ty), _trait(CORE_OPS, "Neg"), ["neg"])

	for name in INTS:
		ty = named(name)
		for trait, method in _BITS + _SHIFTS:
			_binary_with_refs(index, ty, trait, method)
		_add(index, ty, _trait(CORE_OPS, "Not"), ["not"])
		_add(index, TyRef(ty), _trait(CORE_OPS, "Not"), ["not"])

	boolean = named("bool")
	for trait, method in _BITS:
		_binary_with_refs(index, boolean, trait, method)
	_add(index, boolean, _trait(CORE_OPS, "Not"), ["not"])
	_add(index, TyRef(boolean), _trait(CORE_OPS, "Not"), ["not"])
	_comparisons(index, boolean)

	for name in ("char", "str"):
		_comparisons(index, named(name))
	_comparisons(index, TyTuple(()))

	string = named("String")
	str_ref = TyRef(named("str"))
	_add(index, string, _trait(CORE_OPS, "Add", (str_ref,)), ["add"])
	_add(index, string, _trait(CORE_OPS, "AddAssign", (str_ref,)), ["add_assign"])
	_add(index, string, _trait(CORE_OPS, "Deref"), ["deref"])
	_add(index, string, _trait(CORE_CMP, "PartialEq", (str_ref,)), ["eq", "ne"])
	_comparisons(index, string)

	usize = named("usize")
	vec_t = named("Vec", args=(_T,))
	array_t = TyArray(_T, "N")
	for container, params in ((TySlice(_T), ("T",)), (array_t, ("T", "N")), (vec_t, ("T",))):
		_add(index, container, _trait(CORE_OPS, "Index", (usize,)), ["index"], params)
		_add(index, container, _trait(CORE_CMP, "PartialEq"), ["eq", "ne"], params, [("T", f"{CORE_CMP}::PartialEq")])
	_add(index, vec_t, _trait(CORE_OPS, "Deref"), ["deref"], ("T",))

	# Blanket reference impls last so concrete `&i32` entries above win.
	_add(index, TyRef(_T), _trait(CORE_OPS, "Deref"), ["deref"], ("T",))
	_add(index, TyRef(_T, mutable=True), _trait(CORE_OPS, "Deref"), ["deref"], ("T",))
	_comparisons(index, TyRef(_T), ("T",))
	_comparisons(index, TyRef(_T, mutable=True), ("T",))


__all__ = ["install_prelude", "INTS", "SIGNED_INTS", "UNSIGNED_INTS", "FLOATS"]
