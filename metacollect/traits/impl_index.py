# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Impl registry and the registry-backed trait resolver.

`ImplIndex` holds every impl block of the program (plus, optionally, the
primitive prelude) bucketed by canonical trait path, with inherent impls kept
separately. Operand types are matched structurally against the impl's self
type and trait arguments; the impl's generic parameters act as pattern
variables that must bind consistently across all operands.

Trait bounds on impl parameters (`impl<T: Ord> Ord for W<T>`) are checked
against the index once the parameters are bound. Where-clauses beyond
parameter bounds are not modelled.

Named types are compared in crate-relative form: impl self types declared in
a module are qualified with the module path, and a leading `crate` or crate
name is dropped on both the impl side and the operand side.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from metacollect.model.items import (
	EnumDef,
	FunctionDef,
	ImplDef,
	Program,
	StructDef,
	TraitDef,
	UnionDef,
	impl_segment,
	walk_items,
)
from metacollect.model.types import (
	TyArray,
	TyFn,
	TyNever,
	TyPath,
	TyPtr,
	TyRef,
	TySlice,
	TyTuple,
	TypeShape,
	is_opaque,
	map_paths,
)
from metacollect.records import ResolvedTarget
from metacollect.traits.catalog import (
	OperandPolicy,
	TraitCandidate,
	canonical_trait_path,
	operand_policy,
	operator_trait_path,
)
from metacollect.traits.resolver import TraitResolver

# Pattern-variable bindings: type params bind to shapes, const params to length text.
Bindings = Dict[str, object]

# Bound checks recurse through blanket impls (`&T: Ord` needs `T: Ord`).
_MAX_BOUND_DEPTH = 16


@dataclass(frozen=True)
class ImplMethodMeta:
	name: str
	path: str


@dataclass(frozen=True)
class ImplMeta:
	impl_id: int
	self_ty: TypeShape
	trait_path: Optional[str] = None  # canonical; None for inherent impls
	trait_args: Tuple[TypeShape, ...] = ()
	params: frozenset[str] = frozenset()
	# `(param, canonical trait path)` obligations from `impl<T: Trait>`.
	bounds: Tuple[Tuple[str, str], ...] = ()
	methods: Tuple[ImplMethodMeta, ...] = ()
	# Methods inherited from the trait's default bodies (resolved to `trait::name`).
	provided: Tuple[str, ...] = ()

	def method_path(self, name: str) -> Optional[str]:
		for method in self.methods:
			if method.name == name:
				return method.path
		if self.trait_path is not None and name in self.provided:
			return f"{self.trait_path}::{name}"
		return None

	def defines(self, name: str) -> bool:
		return self.method_path(name) is not None


def match_type(pattern: TypeShape, concrete: TypeShape, params: frozenset[str], bindings: Bindings) -> bool:
	"""
	Structural match of `concrete` against an impl-side `pattern`.

	Lifetimes are ignored. Trait objects, impl-trait, inference holes and
	projections never match.
	"""
	if isinstance(pattern, TyPath) and pattern.is_bare() and pattern.name in params:
		bound = bindings.get(pattern.name)
		if bound is None:
			if is_opaque(concrete):
				return False
			bindings[pattern.name] = concrete
			return True
		return isinstance(bound, TypeShape) and match_type(bound, concrete, frozenset(), {})
	if is_opaque(pattern) or is_opaque(concrete):
		return False
	if type(pattern) is not type(concrete):
		return False
	if isinstance(pattern, TyPath):
		assert isinstance(concrete, TyPath)
		if not _same_path(pattern.path, concrete.path):
			return False
		if len(pattern.args) != len(concrete.args):
			return False
		if not _match_all(pattern.args, concrete.args, params, bindings):
			return False
		if [n for n, _ in pattern.bindings] != [n for n, _ in concrete.bindings]:
			return False
		if not _match_all(
			tuple(t for _, t in pattern.bindings), tuple(t for _, t in concrete.bindings), params, bindings
		):
			return False
		if (pattern.inputs is None) != (concrete.inputs is None):
			return False
		if pattern.inputs is not None and not _match_all(pattern.inputs, concrete.inputs or (), params, bindings):
			return False
		return _match_opt(pattern.output, concrete.output, params, bindings)
	if isinstance(pattern, (TyRef, TyPtr)):
		assert isinstance(concrete, (TyRef, TyPtr))
		return pattern.mutable == concrete.mutable and match_type(pattern.inner, concrete.inner, params, bindings)
	if isinstance(pattern, TyTuple):
		assert isinstance(concrete, TyTuple)
		return _match_all(pattern.elems, concrete.elems, params, bindings)
	if isinstance(pattern, TyArray):
		assert isinstance(concrete, TyArray)
		if not match_type(pattern.elem, concrete.elem, params, bindings):
			return False
		if pattern.length in params:
			bound = bindings.setdefault(pattern.length, concrete.length)
			return bound == concrete.length
		return pattern.length == concrete.length
	if isinstance(pattern, TySlice):
		assert isinstance(concrete, TySlice)
		return match_type(pattern.elem, concrete.elem, params, bindings)
	if isinstance(pattern, TyFn):
		assert isinstance(concrete, TyFn)
		return _match_all(pattern.inputs, concrete.inputs, params, bindings) and _match_opt(
			pattern.output, concrete.output, params, bindings
		)
	if isinstance(pattern, TyNever):
		return True
	return False


def _match_all(
	patterns: Sequence[TypeShape], concretes: Sequence[TypeShape], params: frozenset[str], bindings: Bindings
) -> bool:
	if len(patterns) != len(concretes):
		return False
	return all(match_type(p, c, params, bindings) for p, c in zip(patterns, concretes))


def _match_opt(
	pattern: Optional[TypeShape], concrete: Optional[TypeShape], params: frozenset[str], bindings: Bindings
) -> bool:
	if pattern is None or concrete is None:
		return pattern is None and concrete is None
	return match_type(pattern, concrete, params, bindings)


def _same_path(pattern: Tuple[str, ...], concrete: Tuple[str, ...]) -> bool:
	"""
	Paths name the same type. A single-segment path on either side is a name
	as written (`Point`, `String`) and matches on the last segment.
	"""
	pattern, concrete = _strip_crate(pattern), _strip_crate(concrete)
	if pattern == concrete:
		return True
	if len(pattern) == 1 or len(concrete) == 1:
		return pattern[-1] == concrete[-1]
	return False


def _strip_crate(path: Tuple[str, ...], crate: Optional[str] = None) -> Tuple[str, ...]:
	if len(path) > 1 and (path[0] in ("crate", "") or path[0] == crate):
		return path[1:]
	return path


class ImplIndex:
	"""Impl blocks by canonical trait path, plus inherent impls, in registration order."""

	def __init__(self, crate: Optional[str] = None) -> None:
		self.crate = crate
		self._by_trait: Dict[str, List[ImplMeta]] = {}
		self._inherent: List[ImplMeta] = []
		self._next_id = 0

	def add_impl(
		self,
		*,
		self_ty: TypeShape,
		trait: Optional[TyPath] = None,
		params: Iterable[str] = (),
		bounds: Iterable[Tuple[str, str]] = (),
		methods: Iterable[ImplMethodMeta] = (),
		provided: Iterable[str] = (),
		trait_path: Optional[str] = None,
	) -> ImplMeta:
		"""
		Register one impl. `trait_path` overrides the canonical path derived
		from `trait` (used when the program's own trait paths are crate-relative).
		"""
		if trait is not None and trait_path is None:
			trait_path = canonical_trait_path("::".join(trait.path))
		impl = ImplMeta(
			impl_id=self._next_id,
			self_ty=self.normalize(self_ty),
			trait_path=trait_path,
			trait_args=tuple(self.normalize(t) for t in trait.args) if trait is not None else (),
			params=frozenset(params),
			bounds=tuple((param, canonical_trait_path(path)) for param, path in bounds),
			methods=tuple(methods),
			provided=tuple(provided),
		)
		self._next_id += 1
		if trait_path is None:
			self._inherent.append(impl)
		else:
			self._by_trait.setdefault(trait_path, []).append(impl)
		return impl

	def normalize(self, ty: TypeShape) -> TypeShape:
		"""Crate-relative form of `ty`: drops a leading `crate`, `::` or crate name."""
		return map_paths(ty, lambda path: _strip_crate(path, self.crate))

	def trait_impls(self, trait_path: str) -> List[ImplMeta]:
		return list(self._by_trait.get(canonical_trait_path(trait_path), []))

	def inherent_impls(self) -> List[ImplMeta]:
		return list(self._inherent)

	def all_trait_impls(self) -> List[ImplMeta]:
		return [impl for impls in self._by_trait.values() for impl in impls]

	def implements(self, ty: TypeShape, trait_path: str, depth: int = 0) -> bool:
		"""True if some impl of `trait_path` applies to `ty` with its bounds satisfied."""
		if depth > _MAX_BOUND_DEPTH:
			return False
		for impl in self.trait_impls(trait_path):
			bindings: Bindings = {}
			if match_type(impl.self_ty, ty, impl.params, bindings) and self.bounds_hold(impl, bindings, depth + 1):
				return True
		return False

	def bounds_hold(self, impl: ImplMeta, bindings: Bindings, depth: int = 0) -> bool:
		"""Check `impl`'s parameter bounds for the types its parameters were bound to."""
		for param, trait_path in impl.bounds:
			bound = bindings.get(param)
			if isinstance(bound, TypeShape) and not self.implements(bound, trait_path, depth):
				return False
		return True

	def __len__(self) -> int:
		return len(self._inherent) + sum(len(v) for v in self._by_trait.values())

	@classmethod
	def from_program(cls, program: Program, *, prelude: bool = True) -> "ImplIndex":
		"""Index every impl reachable through modules (program impls before the prelude)."""
		index = cls(program.crate)
		flat = walk_items(program.items, (program.crate,))

		provided_by_trait: Dict[str, Tuple[str, ...]] = {}
		declared: Set[Tuple[str, ...]] = set()
		for prefix, item in flat:
			if isinstance(item, TraitDef):
				qual = "::".join(prefix + (item.name,))
				provided_by_trait[qual] = tuple(
					f.name for f in item.items if isinstance(f, FunctionDef) and f.body is not None
				)
			elif isinstance(item, (StructDef, EnumDef, UnionDef)):
				declared.add(prefix[1:] + (item.name,))

		for prefix, item in flat:
			if not isinstance(item, ImplDef):
				continue
			impl_prefix = prefix + (impl_segment(item),)
			methods = [
				ImplMethodMeta(name=f.name, path="::".join(impl_prefix + (f.name,)))
				for f in item.items
				if isinstance(f, FunctionDef)
			]
			params = item.generics.param_names()
			qualify = _Qualifier(program.crate, prefix[1:], declared, params)
			trait = None
			trait_path = None
			provided: Tuple[str, ...] = ()
			if item.trait is not None:
				trait = qualify.path(item.trait)
				trait_path = _trait_path(program.crate, prefix, item.trait, provided_by_trait)
				provided = provided_by_trait.get(trait_path, ())
			index.add_impl(
				self_ty=qualify.type(item.self_ty),
				trait=trait,
				params=params,
				bounds=[
					(param, _trait_path(program.crate, prefix, bound, provided_by_trait))
					for param, bound in item.generics.bounds
				],
				methods=methods,
				provided=provided,
				trait_path=trait_path,
			)

		if prelude:
			from metacollect.traits.prelude import install_prelude

			install_prelude(index)
		return index


class _Qualifier:
	"""Rewrites type names declared in the impl's module to crate-relative paths."""

	def __init__(
		self, crate: str, module: Tuple[str, ...], declared: Set[Tuple[str, ...]], params: frozenset[str]
	) -> None:
		self.crate = crate
		self.module = module
		self.declared = declared
		self.params = params

	def _path(self, path: Tuple[str, ...]) -> Tuple[str, ...]:
		if len(path) == 1 and path[0] in self.params:
			return path
		if path[0] in ("crate", "", self.crate):
			return _strip_crate(path, self.crate)
		local = self.module + path
		if local in self.declared:
			return local
		return path

	def type(self, ty: TypeShape) -> TypeShape:
		return map_paths(ty, self._path)

	def path(self, trait: TyPath) -> TyPath:
		qualified = map_paths(trait, self._path)
		assert isinstance(qualified, TyPath)
		return qualified


def _trait_path(crate: str, prefix: Tuple[str, ...], trait: TyPath, local_traits: Dict[str, Tuple[str, ...]]) -> str:
	"""
	Canonical path of a trait as written in an impl or bound. A bare name is
	looked up next to the impl first, then among the operator traits.
	"""
	path = trait.path
	if len(path) > 1 and path[0] == "crate":
		path = (crate,) + path[1:]
	if len(path) == 1:
		local = "::".join(prefix + path)
		if local in local_traits:
			return local
		known = operator_trait_path(path[0])
		if known is not None:
			return known
	return canonical_trait_path("::".join(path))


class ImplIndexResolver(TraitResolver):
	"""Trait resolver backed by an `ImplIndex`."""

	def __init__(self, index: ImplIndex) -> None:
		self.index = index

	def lookup(
		self,
		candidate: TraitCandidate,
		operand_types: Sequence[TypeShape],
	) -> Optional[ResolvedTarget]:
		if not operand_types:
			return None
		trait_path = canonical_trait_path(candidate.trait_path)
		policy = operand_policy(trait_path)
		operands = [self.index.normalize(t) for t in operand_types]
		for impl in self.index.trait_impls(trait_path):
			if self._impl_applies(impl, policy, operands):
				path = impl.method_path(candidate.method) or f"{trait_path}::{candidate.method}"
				return ResolvedTarget(method_path=path, trait_path=trait_path)
		return None

	def resolve_method(self, receiver_type: TypeShape, method: str) -> Optional[ResolvedTarget]:
		"""
		Try the receiver, then each auto-deref step through references.
		At every step inherent impls are tried before trait impls; a unique
		match wins, an ambiguous one stops the search.
		"""
		step: Optional[TypeShape] = self.index.normalize(receiver_type)
		while step is not None:
			if is_opaque(step):
				return None
			for impls in (self.index.inherent_impls(), self.index.all_trait_impls()):
				hits = [impl for impl in impls if impl.defines(method) and self._self_applies(impl, step)]
				if len(hits) > 1:
					return None
				if hits:
					impl = hits[0]
					return ResolvedTarget(method_path=impl.method_path(method) or method, trait_path=impl.trait_path)
			step = step.inner if isinstance(step, TyRef) else None
		return None

	def _self_applies(self, impl: ImplMeta, ty: TypeShape) -> bool:
		bindings: Bindings = {}
		return match_type(impl.self_ty, ty, impl.params, bindings) and self.index.bounds_hold(impl, bindings)

	def _impl_applies(self, impl: ImplMeta, policy: OperandPolicy, operand_types: Sequence[TypeShape]) -> bool:
		bindings: Bindings = {}
		if not match_type(impl.self_ty, operand_types[0], impl.params, bindings):
			return False
		if len(operand_types) > 1 and not _rhs_applies(impl, policy, operand_types[1], bindings):
			return False
		return self.index.bounds_hold(impl, bindings)


def _rhs_applies(impl: ImplMeta, policy: OperandPolicy, rhs: TypeShape, bindings: Bindings) -> bool:
	if policy is OperandPolicy.SELF:
		return False
	if policy is OperandPolicy.SELF_PAIR:
		return match_type(impl.self_ty, rhs, impl.params, bindings)
	if impl.trait_args:
		return match_type(impl.trait_args[0], rhs, impl.params, bindings)
	if policy is OperandPolicy.RHS_REQUIRED:
		return False
	return match_type(impl.self_ty, rhs, impl.params, bindings)


__all__ = [
	"ImplMethodMeta",
	"ImplMeta",
	"ImplIndex",
	"ImplIndexResolver",
	"match_type",
]
