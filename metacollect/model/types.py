# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Type shapes: structural, alias-preserving descriptions of types.

The same node family serves two purposes:
- declared field types, recorded as-is (no alias resolution, no generic
  substitution), and
- resolved static types of expressions, used as operand types for trait
  lookups.

Two renderings are provided:
- `str(ty)` gives Rust-like surface syntax (`&'a mut [u8; 4]`), used inside
  impl path segments and method paths;
- `ty.describe()` gives the language-neutral structural descriptor written to
  the field-type record stream (`Ref('a mut Array(Path(u8); 4))`).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple, Union


class TypeShape:
	"""Base class for all type shapes."""

	def describe(self) -> str:
		raise NotImplementedError


@dataclass(frozen=True)
class TyPath(TypeShape):
	"""
	Named type: `a::b::Name<'l, T, Assoc = U>`.

	Parenthesized trait sugar (`Fn(A, B) -> C`) is kept as `inputs`/`output`
	instead of generic args so both spellings round-trip through `str()`.
	"""

	path: Tuple[str, ...]
	args: Tuple[TypeShape, ...] = ()
	lifetimes: Tuple[str, ...] = ()
	bindings: Tuple[Tuple[str, TypeShape], ...] = ()
	inputs: Optional[Tuple[TypeShape, ...]] = None
	output: Optional[TypeShape] = None

	@property
	def name(self) -> str:
		return self.path[-1]

	def is_bare(self) -> bool:
		"""Single-segment path without generic arguments (`T`, `i32`)."""
		return (
			len(self.path) == 1
			and not self.args
			and not self.lifetimes
			and not self.bindings
			and self.inputs is None
		)

	def _suffix(self, render) -> str:
		if self.inputs is not None:
			out = f"({', '.join(render(t) for t in self.inputs)})"
			if self.output is not None:
				out += f" -> {render(self.output)}"
			return out
		parts = list(self.lifetimes)
		parts.extend(render(t) for t in self.args)
		parts.extend(f"{name} = {render(t)}" for name, t in self.bindings)
		if not parts:
			return ""
		return f"<{', '.join(parts)}>"

	def __str__(self) -> str:
		return "::".join(self.path) + self._suffix(str)

	def describe(self) -> str:
		return f"Path({'::'.join(self.path)}{self._suffix(lambda t: t.describe())})"


@dataclass(frozen=True)
class TyRef(TypeShape):
	"""Reference `&'l mut T`; the lifetime is optional and ignored by matching."""

	inner: TypeShape
	mutable: bool = False
	lifetime: Optional[str] = None

	def _prefix(self) -> str:
		parts = []
		if self.lifetime:
			parts.append(self.lifetime)
		if self.mutable:
			parts.append("mut")
		return " ".join(parts)

	def __str__(self) -> str:
		prefix = self._prefix()
		return f"&{prefix} {self.inner}" if prefix else f"&{self.inner}"

	def describe(self) -> str:
		prefix = self._prefix()
		inner = self.inner.describe()
		return f"Ref({prefix} {inner})" if prefix else f"Ref({inner})"


@dataclass(frozen=True)
class TyPtr(TypeShape):
	"""Raw pointer `*const T` / `*mut T`."""

	inner: TypeShape
	mutable: bool = False

	def __str__(self) -> str:
		return f"*{'mut' if self.mutable else 'const'} {self.inner}"

	def describe(self) -> str:
		return f"Ptr({'mut' if self.mutable else 'const'} {self.inner.describe()})"


@dataclass(frozen=True)
class TyTuple(TypeShape):
	"""Tuple `(A, B)`; the unit type is the empty tuple."""

	elems: Tuple[TypeShape, ...] = ()

	def __str__(self) -> str:
		if len(self.elems) == 1:
			return f"({self.elems[0]},)"
		return f"({', '.join(str(t) for t in self.elems)})"

	def describe(self) -> str:
		return f"Tuple({', '.join(t.describe() for t in self.elems)})"


@dataclass(frozen=True)
class TyArray(TypeShape):
	"""Fixed-size array `[T; N]`; `length` is kept as written (literal or const name)."""

	elem: TypeShape
	length: str

	def __str__(self) -> str:
		return f"[{self.elem}; {self.length}]"

	def describe(self) -> str:
		return f"Array({self.elem.describe()}; {self.length})"


@dataclass(frozen=True)
class TySlice(TypeShape):
	elem: TypeShape

	def __str__(self) -> str:
		return f"[{self.elem}]"

	def describe(self) -> str:
		return f"Slice({self.elem.describe()})"


@dataclass(frozen=True)
class TyFn(TypeShape):
	"""Function pointer `fn(A, B) -> R`; `output` None means unit return."""

	inputs: Tuple[TypeShape, ...] = ()
	output: Optional[TypeShape] = None

	def __str__(self) -> str:
		out = f"fn({', '.join(str(t) for t in self.inputs)})"
		if self.output is not None:
			out += f" -> {self.output}"
		return out

	def describe(self) -> str:
		out = ", ".join(t.describe() for t in self.inputs)
		if self.output is not None:
			out += f" -> {self.output.describe()}"
		return f"FnPtr({out})"


@dataclass(frozen=True)
class TyNever(TypeShape):
	def __str__(self) -> str:
		return "!"

	def describe(self) -> str:
		return "Never"


@dataclass(frozen=True)
class TyInfer(TypeShape):
	def __str__(self) -> str:
		return "_"

	def describe(self) -> str:
		return "Infer"


# Trait-object / impl-trait bounds are trait paths or lifetimes.
Bound = Union[TyPath, str]


def _render_bound(bound: Bound, describe: bool) -> str:
	if isinstance(bound, str):
		return bound
	return bound.describe() if describe else str(bound)


@dataclass(frozen=True)
class TyDyn(TypeShape):
	"""Trait object `dyn A + B + 'l`."""

	bounds: Tuple[Bound, ...]

	def __str__(self) -> str:
		return "dyn " + " + ".join(_render_bound(b, False) for b in self.bounds)

	def describe(self) -> str:
		return f"Dyn({' + '.join(_render_bound(b, True) for b in self.bounds)})"


@dataclass(frozen=True)
class TyImpl(TypeShape):
	"""Opaque `impl A + B`."""

	bounds: Tuple[Bound, ...]

	def __str__(self) -> str:
		return "impl " + " + ".join(_render_bound(b, False) for b in self.bounds)

	def describe(self) -> str:
		return f"Impl({' + '.join(_render_bound(b, True) for b in self.bounds)})"


@dataclass(frozen=True)
class TyQPath(TypeShape):
	"""Qualified projection `<T as Trait>::Name` (or `<T>::Name`)."""

	self_ty: TypeShape
	trait: Optional[TyPath]
	names: Tuple[str, ...]

	def __str__(self) -> str:
		head = f"<{self.self_ty} as {self.trait}>" if self.trait is not None else f"<{self.self_ty}>"
		return head + "".join(f"::{n}" for n in self.names)

	def describe(self) -> str:
		head = self.self_ty.describe()
		if self.trait is not None:
			head += f" as {self.trait.describe()}"
		return f"QPath({head}{''.join(f'::{n}' for n in self.names)})"


UNIT = TyTuple(())


def named(*path: str, args: Tuple[TypeShape, ...] = ()) -> TyPath:
	"""Shorthand used by the prelude and tests: `named("Vec", args=(named("u8"),))`."""
	return TyPath(path=tuple(path), args=tuple(args))


def strip_refs(ty: TypeShape) -> TypeShape:
	while isinstance(ty, TyRef):
		ty = ty.inner
	return ty


def is_opaque(ty: TypeShape) -> bool:
	"""
	Types the pass never resolves through: trait objects, impl-trait, inference
	holes and unnormalized projections.
	"""
	return isinstance(ty, (TyDyn, TyImpl, TyInfer, TyQPath))


def map_paths(ty: TypeShape, fn: Callable[[Tuple[str, ...]], Tuple[str, ...]]) -> TypeShape:
	"""Rebuild `ty` with `fn` applied to every named-type path inside it."""

	def bound(b: Bound) -> Bound:
		return b if isinstance(b, str) else map_paths(b, fn)

	if isinstance(ty, TyPath):
		return replace(
			ty,
			path=fn(ty.path),
			args=tuple(map_paths(t, fn) for t in ty.args),
			bindings=tuple((name, map_paths(t, fn)) for name, t in ty.bindings),
			inputs=tuple(map_paths(t, fn) for t in ty.inputs) if ty.inputs is not None else None,
			output=map_paths(ty.output, fn) if ty.output is not None else None,
		)
	if isinstance(ty, (TyRef, TyPtr)):
		return replace(ty, inner=map_paths(ty.inner, fn))
	if isinstance(ty, TyTuple):
		return TyTuple(tuple(map_paths(t, fn) for t in ty.elems))
	if isinstance(ty, (TyArray, TySlice)):
		return replace(ty, elem=map_paths(ty.elem, fn))
	if isinstance(ty, TyFn):
		return TyFn(
			inputs=tuple(map_paths(t, fn) for t in ty.inputs),
			output=map_paths(ty.output, fn) if ty.output is not None else None,
		)
	if isinstance(ty, (TyDyn, TyImpl)):
		return replace(ty, bounds=tuple(bound(b) for b in ty.bounds))
	if isinstance(ty, TyQPath):
		trait = map_paths(ty.trait, fn) if ty.trait is not None else None
		return replace(ty, self_ty=map_paths(ty.self_ty, fn), trait=trait)
	return ty


__all__ = [
	"TypeShape",
	"TyPath",
	"TyRef",
	"TyPtr",
	"TyTuple",
	"TyArray",
	"TySlice",
	"TyFn",
	"TyNever",
	"TyInfer",
	"TyDyn",
	"TyImpl",
	"TyQPath",
	"Bound",
	"UNIT",
	"named",
	"strip_refs",
	"is_opaque",
	"map_paths",
]
