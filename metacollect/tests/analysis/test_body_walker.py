# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from metacollect.analysis.body_walker import FunctionBodyWalker, mentions_params
from metacollect.core.paths import PathStack
from metacollect.model.exprs import (
	Block,
	EAssignOp,
	BinaryOp,
	EClosure,
	EIndex,
	EMethodCall,
	EPath,
	EUnary,
	Param,
	SExpr,
	SItem,
	UnaryOp,
)
from metacollect.model.items import FieldDef, FieldsKind, FunctionDef, ImplDef, StructDef
from metacollect.model.types import TyPath, named
from metacollect.parser.type_parser import parse_type
from metacollect.records import CallKind, MemorySink
from metacollect.test_helpers import RecordingResolver, binary, body, call, collect, func, lit, local, program
from metacollect.traits.resolver import NullResolver


def _meters_with_add() -> list:
	meters = StructDef(name="Meters", kind=FieldsKind.TUPLE, fields=[FieldDef(ty=named("f64"))])
	add = ImplDef(
		self_ty=named("Meters"),
		trait=TyPath(path=("core", "ops", "Add")),
		items=[FunctionDef(name="add", body=Block())],
	)
	return [meters, add]


def test_add_only_type_yields_exactly_one_record() -> None:
	f = func("f", binary("+", local("a", "Meters"), local("b", "Meters"), ty="Meters"))
	sink, _ = collect(program(*_meters_with_add(), f))
	assert sink.call_lines() == ["demo::f\tdemo::<Meters as core::ops::Add>::add"]
	assert sink.calls[0].kind is CallKind.BINARY
	assert sink.calls[0].target.trait_path == "core::ops::Add"


def test_compound_assignment_falls_back_to_plain_trait() -> None:
	f = func("f", EAssignOp(op=BinaryOp.ADD, target=local("m", "Meters"), value=local("n", "Meters")))
	g = func("g", EAssignOp(op=BinaryOp.ADD, target=local("x", "i32"), value=lit(1)))
	sink, _ = collect(program(*_meters_with_add(), f, g))
	assert sink.call_lines() == [
		"demo::f\tdemo::<Meters as core::ops::Add>::add",
		"demo::g\t<i32 as core::ops::AddAssign>::add_assign",
	]


def test_ordering_queries_total_order_before_partial_order() -> None:
	f = func("f", binary("<", local("a", "f64"), local("b", "f64")))

	partial_only = RecordingResolver(implemented={"core::cmp::PartialOrd"})
	sink, _ = collect(program(f), partial_only)
	assert partial_only.queried_traits() == ["core::cmp::Ord", "core::cmp::PartialOrd"]
	assert sink.call_lines() == ["demo::f\tcore::cmp::PartialOrd::lt"]

	both = RecordingResolver(implemented={"core::cmp::Ord", "core::cmp::PartialOrd"})
	sink, _ = collect(program(f), both)
	assert both.queried_traits() == ["core::cmp::Ord"]
	assert sink.call_lines() == ["demo::f\tcore::cmp::Ord::cmp"]


def test_short_circuit_never_records_but_operands_are_walked() -> None:
	cond = binary("&&", binary(">", binary("+", local("x", "i32"), lit(1), ty="i32"), lit(2), ty="bool"), local("ok", "bool"))
	resolver = RecordingResolver(implemented={"core::ops::Add", "core::cmp::Ord", "core::ops::BitAnd"})
	sink, _ = collect(program(func("f", cond)), resolver)
	assert [r.kind for r in sink.calls] == [CallKind.COMPARISON, CallKind.BINARY]
	assert "core::ops::BitAnd" not in resolver.queried_traits()

	only_logic = func("g", binary("||", local("a", "bool"), local("b", "bool")))
	sink, _ = collect(program(only_logic), RecordingResolver(implemented={"core::ops::BitOr"}))
	assert sink.calls == []


def test_nested_calls_record_outer_before_inner() -> None:
	expr = call("foo", binary("+", call("bar", local("x", "i32"), res="demo::bar", ty="i32"), lit(1), ty="i32"), res="demo::foo")
	sink, _ = collect(program(func("main", expr)))
	assert sink.call_lines() == [
		"demo::main\tdemo::foo",
		"demo::main\t<i32 as core::ops::Add>::add",
		"demo::main\tdemo::bar",
	]


def test_nested_calls_without_resolver_still_record_direct_calls() -> None:
	expr = call("foo", binary("+", call("bar", local("x", "i32")), lit(1)))
	sink, _ = collect(program(func("main", expr)), NullResolver())
	assert sink.call_lines() == ["demo::main\tfoo", "demo::main\tbar"]


def test_unary_index_and_method_calls() -> None:
	point_impl = ImplDef(self_ty=named("Point"), items=[FunctionDef(name="norm", body=Block())])
	f = func(
		"f",
		EUnary(op=UnaryOp.NEG, operand=local("x", "i32")),
		EUnary(op=UnaryOp.DEREF, operand=local("r", "&u8")),
		EIndex(base=local("v", "&Vec<u8>"), index=lit(0, "usize")),
		EMethodCall(receiver=local("p", "&Point"), method="norm"),
		EMethodCall(receiver=local("v", "Vec<u8>"), method="len", res="alloc::vec::Vec::len"),
		EMethodCall(receiver=local("q", "dyn Shape"), method="area"),
	)
	sink, _ = collect(program(point_impl, f))
	assert sink.call_lines() == [
		"demo::f\t<i32 as core::ops::Neg>::neg",
		"demo::f\t<&T as core::ops::Deref>::deref",
		"demo::f\t<Vec<T> as core::ops::Index<usize>>::index",
		"demo::f\tdemo::Point::norm",
		"demo::f\talloc::vec::Vec::len",
	]


def test_generic_operands_and_untyped_operands_are_skipped() -> None:
	f = func(
		"f",
		binary("+", local("a", "T"), local("b", "T")),
		binary("+", local("v", "Vec<T>"), local("w", "Vec<T>")),
		call("T::default"),
		binary("+", EPath(segments=("u",), is_local=True), lit(1)),
		binary("+", lit(1), lit(2)),
		generics=["T"],
	)
	sink, collector = collect(program(f))
	assert sink.call_lines() == ["demo::f\t<i32 as core::ops::Add>::add"]
	assert collector.stats.classified == 5
	assert collector.stats.skipped == 4


def test_nested_items_are_visited_in_place_under_the_function() -> None:
	inner = FunctionDef(name="inner", body=body(call("beta", res="demo::beta")))
	outer = FunctionDef(
		name="outer",
		body=Block(
			stmts=[
				SExpr(expr=call("alpha", res="demo::alpha")),
				SItem(item=inner),
				SExpr(expr=call("gamma", res="demo::gamma")),
			]
		),
	)
	sink, collector = collect(program(outer))
	assert sink.call_lines() == [
		"demo::outer\tdemo::alpha",
		"demo::outer::inner\tdemo::beta",
		"demo::outer\tdemo::gamma",
	]
	assert collector.stack.is_empty()


def test_closure_bodies_belong_to_the_enclosing_function() -> None:
	closure = EClosure(params=[Param(name="v")], body=binary("*", local("v", "u32"), lit(2, "u32")))
	sink, _ = collect(program(func("main", call("apply", closure, res="demo::apply"))))
	assert sink.call_lines() == ["demo::main\tdemo::apply", "demo::main\t<u32 as core::ops::Mul>::mul"]


def test_deep_expression_chains_do_not_recurse() -> None:
	expr = lit(0)
	for i in range(20000):
		expr = binary("+", expr, lit(i), ty="i32")
	sink = MemorySink()
	walker = FunctionBodyWalker(NullResolver(), sink)
	stack = PathStack("demo")
	with stack.entered("deep"):
		walker.walk(stack.context(), body(expr))
	assert walker.stats.classified == 20000
	assert walker.stats.skipped == 20000
	assert sink.calls == []


def test_mentions_params_looks_through_type_structure() -> None:
	params = frozenset({"T", "N"})
	assert mentions_params(parse_type("&[Option<T>]"), params)
	assert mentions_params(parse_type("[u8; N]"), params)
	assert mentions_params(parse_type("fn(i32) -> T"), params)
	assert mentions_params(parse_type("T::Output"), params)
	assert not mentions_params(parse_type("Vec<Target>"), params)
	assert not mentions_params(parse_type("T"), frozenset())
