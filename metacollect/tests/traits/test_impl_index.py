# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from metacollect.model.items import FieldDef, FunctionDef, Generics, ImplDef, ModuleDef, StructDef, TraitDef
from metacollect.model.exprs import BinaryOp, Block
from metacollect.model.types import TyArray, TyPath, TyRef, named
from metacollect.parser.type_parser import parse_type
from metacollect.records import ResolvedTarget
from metacollect.test_helpers import program
from metacollect.traits.catalog import BINARY_CANDIDATES, COMPOUND_CANDIDATES, INDEX_CANDIDATES, TraitCandidate
from metacollect.traits.impl_index import ImplIndex, ImplIndexResolver, match_type


def _resolver(*items, prelude: bool = True) -> ImplIndexResolver:
	return ImplIndexResolver(ImplIndex.from_program(program(*items), prelude=prelude))


def _ty(text: str):
	return parse_type(text)


def test_match_type_binds_params_consistently() -> None:
	bindings: dict = {}
	pattern = parse_type("(T, T)")
	assert match_type(pattern, _ty("(i32, i32)"), frozenset({"T"}), bindings)
	assert bindings == {"T": named("i32")}
	assert not match_type(pattern, _ty("(i32, u8)"), frozenset({"T"}), {})


def test_match_type_ignores_lifetimes_and_checks_mutability() -> None:
	assert match_type(_ty("&'a T"), _ty("&str"), frozenset({"T"}), {})
	assert not match_type(_ty("&mut T"), _ty("&str"), frozenset({"T"}), {})
	assert match_type(TyArray(named("T"), "N"), _ty("[u8; 4]"), frozenset({"T", "N"}), {})
	assert not match_type(named("T"), _ty("dyn Any"), frozenset({"T"}), {})
	assert match_type(_ty("crate::Point"), _ty("Point"), frozenset(), {})


def test_prelude_resolves_primitive_arithmetic() -> None:
	resolver = _resolver()
	target = resolver.resolve(BINARY_CANDIDATES[BinaryOp.ADD], [_ty("i32"), _ty("i32")])
	assert target == ResolvedTarget("<i32 as core::ops::Add>::add", "core::ops::Add")
	by_ref = resolver.resolve(BINARY_CANDIDATES[BinaryOp.MUL], [_ty("&f64"), _ty("f64")])
	assert by_ref is not None
	assert by_ref.method_path == "<&f64 as core::ops::Mul<f64>>::mul"
	assert resolver.resolve(BINARY_CANDIDATES[BinaryOp.ADD], [_ty("i32"), _ty("u8")]) is None


def test_float_ordering_falls_back_to_partial_ord() -> None:
	resolver = _resolver()
	ints = resolver.resolve(BINARY_CANDIDATES[BinaryOp.LT], [_ty("i64"), _ty("i64")])
	assert ints == ResolvedTarget("<i64 as core::cmp::Ord>::cmp", "core::cmp::Ord")
	floats = resolver.resolve(BINARY_CANDIDATES[BinaryOp.LT], [_ty("f64"), _ty("f64")])
	assert floats == ResolvedTarget("<f64 as core::cmp::PartialOrd>::lt", "core::cmp::PartialOrd")


def test_string_concatenation_uses_rhs_trait_argument() -> None:
	resolver = _resolver()
	target = resolver.resolve(BINARY_CANDIDATES[BinaryOp.ADD], [_ty("String"), _ty("&str")])
	assert target is not None
	assert target.method_path == "<String as core::ops::Add<&str>>::add"
	assert resolver.resolve(BINARY_CANDIDATES[BinaryOp.ADD], [_ty("String"), _ty("String")]) is None


def test_index_requires_matching_index_type() -> None:
	resolver = _resolver()
	target = resolver.resolve(INDEX_CANDIDATES, [_ty("Vec<u8>"), _ty("usize")])
	assert target is not None
	assert target.method_path == "<Vec<T> as core::ops::Index<usize>>::index"
	assert resolver.resolve(INDEX_CANDIDATES, [_ty("[u8; 3]"), _ty("usize")]) is not None
	assert resolver.resolve(INDEX_CANDIDATES, [_ty("Vec<u8>"), _ty("i32")]) is None


def test_program_impls_come_before_prelude_and_use_impl_paths() -> None:
	add = ImplDef(
		self_ty=named("Meters"),
		trait=TyPath(path=("core", "ops", "Add")),
		items=[FunctionDef(name="add", body=Block())],
	)
	resolver = _resolver(ModuleDef(name="units", items=[add]))
	target = resolver.resolve(COMPOUND_CANDIDATES[BinaryOp.ADD], [named("Meters"), named("Meters")])
	assert target == ResolvedTarget("demo::units::<Meters as core::ops::Add>::add", "core::ops::Add")


def test_generic_program_impl_matches_by_pattern() -> None:
	impl = ImplDef(
		self_ty=parse_type("Wrapper<T>"),
		trait=TyPath(path=("std", "ops", "Neg")),
		items=[FunctionDef(name="neg")],
		generics=Generics(types=["T"]),
	)
	resolver = _resolver(impl, prelude=False)
	target = resolver.resolve((TraitCandidate("core::ops::Neg", "neg"),), [_ty("Wrapper<i8>")])
	assert target is not None
	assert target.method_path == "demo::<Wrapper<T> as std::ops::Neg>::neg"
	assert resolver.resolve((TraitCandidate("core::ops::Neg", "neg"),), [_ty("i8")]) is None


def test_missing_impl_method_resolves_to_trait_method() -> None:
	impl = ImplDef(self_ty=named("Id"), trait=TyPath(path=("core", "cmp", "PartialEq")), items=[FunctionDef(name="eq")])
	resolver = _resolver(impl, prelude=False)
	target = resolver.resolve(BINARY_CANDIDATES[BinaryOp.NE], [named("Id"), named("Id")])
	assert target == ResolvedTarget("core::cmp::PartialEq::ne", "core::cmp::PartialEq")


def test_method_resolution_autoderefs_and_prefers_inherent() -> None:
	inherent = ImplDef(self_ty=named("Point"), items=[FunctionDef(name="norm", body=Block())])
	shape = TraitDef(
		name="Shape",
		items=[FunctionDef(name="area"), FunctionDef(name="describe", body=Block())],
	)
	shape_impl = ImplDef(self_ty=named("Point"), trait=TyPath(path=("Shape",)), items=[FunctionDef(name="area", body=Block())])
	resolver = _resolver(inherent, shape, shape_impl)

	assert resolver.resolve_method(_ty("&Point"), "norm") == ResolvedTarget("demo::Point::norm", None)
	assert resolver.resolve_method(_ty("Point"), "area") == ResolvedTarget("demo::<Point as Shape>::area", "demo::Shape")
	assert resolver.resolve_method(_ty("&&Point"), "describe") == ResolvedTarget("demo::Shape::describe", "demo::Shape")
	assert resolver.resolve_method(_ty("Point"), "missing") is None
	assert resolver.resolve_method(_ty("dyn Shape"), "area") is None


def test_ambiguous_trait_methods_are_not_resolved() -> None:
	a = ImplDef(self_ty=named("P"), trait=TyPath(path=("crate", "A")), items=[FunctionDef(name="show")])
	b = ImplDef(self_ty=named("P"), trait=TyPath(path=("crate", "B")), items=[FunctionDef(name="show")])
	resolver = _resolver(a, b, prelude=False)
	assert resolver.resolve_method(named("P"), "show") is None


def test_reference_deref_and_comparison_blankets() -> None:
	resolver = _resolver()
	deref = resolver.resolve((TraitCandidate("core::ops::Deref", "deref"),), [TyRef(named("Point"))])
	assert deref is not None
	assert deref.method_path == "<&T as core::ops::Deref>::deref"
	eq = resolver.resolve(BINARY_CANDIDATES[BinaryOp.EQ], [_ty("&i32"), _ty("&i32")])
	assert eq is not None
	assert eq.method_path == "<&T as core::cmp::PartialEq>::eq"
	assert len(ImplIndex.from_program(program(), prelude=False)) == 0
	assert len(ImplIndex.from_program(program())) > 0


def test_reference_comparisons_require_the_referent_to_implement_the_trait() -> None:
	resolver = _resolver()
	floats = resolver.resolve(BINARY_CANDIDATES[BinaryOp.LT], [_ty("&f64"), _ty("&f64")])
	assert floats == ResolvedTarget("<&T as core::cmp::PartialOrd>::lt", "core::cmp::PartialOrd")
	ints = resolver.resolve(BINARY_CANDIDATES[BinaryOp.LT], [_ty("&i32"), _ty("&i32")])
	assert ints == ResolvedTarget("<&T as core::cmp::Ord>::cmp", "core::cmp::Ord")
	nested = resolver.resolve(BINARY_CANDIDATES[BinaryOp.GE], [_ty("&&f32"), _ty("&&f32")])
	assert nested is not None
	assert nested.trait_path == "core::cmp::PartialOrd"


def test_bounded_generic_impl_only_applies_when_bounds_hold() -> None:
	ord_impl = ImplDef(
		self_ty=parse_type("W<T>"),
		trait=TyPath(path=("Ord",)),
		items=[FunctionDef(name="cmp")],
		generics=Generics(types=["T"], bounds=[("T", TyPath(path=("Ord",)))]),
	)
	partial_impl = ImplDef(
		self_ty=parse_type("W<T>"),
		trait=TyPath(path=("PartialOrd",)),
		items=[FunctionDef(name="partial_cmp")],
		generics=Generics(types=["T"], bounds=[("T", TyPath(path=("core", "cmp", "PartialOrd")))]),
	)
	resolver = _resolver(ord_impl, partial_impl)
	ints = resolver.resolve(BINARY_CANDIDATES[BinaryOp.LT], [_ty("W<i32>"), _ty("W<i32>")])
	assert ints == ResolvedTarget("demo::<W<T> as Ord>::cmp", "core::cmp::Ord")
	floats = resolver.resolve(BINARY_CANDIDATES[BinaryOp.LT], [_ty("W<f64>"), _ty("W<f64>")])
	assert floats == ResolvedTarget("core::cmp::PartialOrd::lt", "core::cmp::PartialOrd")
	assert resolver.resolve(BINARY_CANDIDATES[BinaryOp.LT], [_ty("W<Opaque>"), _ty("W<Opaque>")]) is None


def _geo_point(self_ty: str) -> ModuleDef:
	point = StructDef(name="Point", fields=[FieldDef(ty=named("f64"), name="x")])
	add = ImplDef(
		self_ty=parse_type(self_ty),
		trait=TyPath(path=("core", "ops", "Add")),
		items=[FunctionDef(name="add", body=Block())],
	)
	norm = ImplDef(self_ty=parse_type(self_ty), items=[FunctionDef(name="norm", body=Block())])
	return ModuleDef(name="geo", items=[point, add, norm])


def test_impls_in_modules_match_qualified_operand_types() -> None:
	resolver = _resolver(_geo_point("Point"))
	for written in ("crate::geo::Point", "demo::geo::Point", "geo::Point", "Point"):
		target = resolver.resolve(BINARY_CANDIDATES[BinaryOp.ADD], [_ty(written), _ty(written)])
		assert target == ResolvedTarget("demo::geo::<Point as core::ops::Add>::add", "core::ops::Add"), written
	assert resolver.resolve(BINARY_CANDIDATES[BinaryOp.ADD], [_ty("crate::other::Point"), _ty("crate::other::Point")]) is None
	assert resolver.resolve_method(_ty("&crate::geo::Point"), "norm") == ResolvedTarget("demo::geo::Point::norm", None)


def test_crate_qualified_impl_self_types_are_normalized() -> None:
	resolver = _resolver(_geo_point("demo::geo::Point"))
	target = resolver.resolve(BINARY_CANDIDATES[BinaryOp.ADD], [_ty("crate::geo::Point"), _ty("crate::geo::Point")])
	assert target is not None
	assert target.method_path == "demo::geo::<demo::geo::Point as core::ops::Add>::add"
	assert resolver.resolve_method(_ty("geo::Point"), "norm") is not None
