# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from metacollect.core.errors import ModelFormatError, TypeExprError
from metacollect.model.exprs import BinaryOp, EAssignOp, EBinary, ECall, EClosure, EMethodCall, EOpaque, EPath, SExpr, SItem, SLet, UnaryOp, EUnary
from metacollect.model.items import EnumDef, FieldsKind, FunctionDef, ImplDef, ModuleDef, OtherItem, StructDef
from metacollect.model.types import TyPath, named
from metacollect.parser.model_loader import load_program


def _model(*items: dict) -> dict:
	return {"crate": "demo", "items": list(items)}


def test_loads_data_types_with_inferred_shapes() -> None:
	prog = load_program(
		_model(
			{"kind": "struct", "name": "Point", "fields": [{"name": "x", "type": "i32"}, {"name": "y", "type": "i32"}]},
			{"kind": "struct", "name": "Meters", "fields": [{"type": "f64"}]},
			{"kind": "struct", "name": "Marker"},
			{
				"kind": "enum",
				"name": "Shape",
				"generics": ["'a", "T: Clone", "const N: usize"],
				"variants": [
					{"name": "Circle", "fields": [{"name": "r", "type": "f64"}]},
					{"name": "Poly", "shape": "tuple", "fields": [{"type": "[T; N]"}]},
					{"name": "Empty"},
				],
			},
		)
	)
	point, meters, marker, shape = prog.items
	assert isinstance(point, StructDef) and point.kind is FieldsKind.NAMED
	assert isinstance(meters, StructDef) and meters.kind is FieldsKind.TUPLE
	assert isinstance(marker, StructDef) and marker.kind is FieldsKind.UNIT
	assert isinstance(shape, EnumDef)
	assert [v.kind for v in shape.variants] == [FieldsKind.NAMED, FieldsKind.TUPLE, FieldsKind.UNIT]
	assert shape.generics.types == ["T"]
	assert shape.generics.lifetimes == ["'a"]
	assert shape.generics.consts == ["N"]
	assert shape.generics.param_names() == frozenset({"T", "N"})
	assert shape.generics.bounds == [("T", TyPath(path=("Clone",)))]


def test_impl_generics_keep_parameter_bounds() -> None:
	flat = {"kind": "impl", "self": "W<T, U>", "trait": "Ord", "generics": ["T: Ord + ?Sized", "U: 'static + core::fmt::Debug"]}
	nested = {
		"kind": "impl",
		"self": "W<T>",
		"trait": "PartialOrd",
		"generics": {"types": ["T"], "bounds": {"T": ["PartialOrd", "Clone"]}},
	}
	first, second = load_program(_model(flat, nested)).items
	assert isinstance(first, ImplDef) and isinstance(second, ImplDef)
	assert first.generics.types == ["T", "U"]
	assert first.generics.bounds == [("T", TyPath(path=("Ord",))), ("U", TyPath(path=("core", "fmt", "Debug")))]
	assert second.generics.bounds == [("T", TyPath(path=("PartialOrd",))), ("T", TyPath(path=("Clone",)))]

	with pytest.raises(ModelFormatError) as excinfo:
		load_program(_model({"kind": "impl", "self": "W<T>", "generics": {"types": ["T"], "bounds": {"T": "Ord"}}}))
	assert excinfo.value.span.pointer == "/items/0/generics/bounds/T"


def test_loads_functions_impls_and_modules() -> None:
	prog = load_program(
		_model(
			{
				"kind": "mod",
				"name": "geo",
				"items": [
					{
						"kind": "impl",
						"self": "Point",
						"trait": "core::ops::Add",
						"items": [{"kind": "fn", "name": "add", "params": [{"name": "self", "type": "Point"}], "ret": "Point"}],
					},
					{"kind": "const", "name": "ORIGIN"},
				],
			}
		)
	)
	(mod,) = prog.items
	assert isinstance(mod, ModuleDef)
	impl, const = mod.items
	assert isinstance(impl, ImplDef)
	assert impl.trait == TyPath(path=("core", "ops", "Add"))
	assert impl.self_ty == named("Point")
	(method,) = impl.items
	assert isinstance(method, FunctionDef)
	assert method.body is None
	assert method.ret == named("Point")
	assert isinstance(const, OtherItem) and const.kind == "const"


def test_loads_bodies_with_operators_and_nested_items() -> None:
	body = {
		"stmts": [
			{"kind": "let", "pattern": "total", "type": "i32", "init": {
				"kind": "binary", "op": "+", "type": "i32",
				"left": {"kind": "path", "path": "a", "local": True, "type": "i32"},
				"right": {"kind": "lit", "lit": "int", "value": 1, "type": "i32"},
			}},
			{"kind": "expr", "expr": {
				"kind": "assign_op", "op": "<<=",
				"target": {"kind": "path", "path": ["total"], "local": True, "type": "i32"},
				"value": {"kind": "lit", "lit": "int", "value": 2, "type": "u32"},
			}},
			{"kind": "item", "item": {"kind": "fn", "name": "inner", "body": {"stmts": []}}},
			{"kind": "expr", "expr": {
				"kind": "method", "method": "len", "res": "alloc::vec::Vec::len",
				"receiver": {"kind": "path", "path": "v", "local": True, "type": "&Vec<u8>"},
			}},
			{"kind": "expr", "expr": {"kind": "unary", "op": "deref", "operand": {"kind": "path", "path": "r", "local": True}}},
			{"kind": "expr", "expr": {"kind": "inline_asm", "children": [{"kind": "lit", "lit": "str"}]}},
		],
		"expr": {
			"kind": "call",
			"func": {"kind": "path", "path": "crate::helpers::run", "res": "demo::helpers::run"},
			"args": [{"kind": "closure", "params": [{"name": "x"}], "body": {"kind": "path", "path": "x", "local": True}}],
		},
	}
	prog = load_program(_model({"kind": "fn", "name": "main", "body": body}))
	(main,) = prog.items
	stmts = main.body.stmts
	assert isinstance(stmts[0], SLet) and isinstance(stmts[0].init, EBinary)
	assert stmts[0].init.op is BinaryOp.ADD
	assert isinstance(stmts[1], SExpr) and isinstance(stmts[1].expr, EAssignOp)
	assert stmts[1].expr.op is BinaryOp.SHL
	assert isinstance(stmts[2], SItem) and stmts[2].item.name == "inner"
	method = stmts[3].expr
	assert isinstance(method, EMethodCall) and method.res == "alloc::vec::Vec::len"
	assert isinstance(stmts[4].expr, EUnary) and stmts[4].expr.op is UnaryOp.DEREF
	assert isinstance(stmts[5].expr, EOpaque) and stmts[5].expr.label == "inline_asm"
	tail = main.body.expr
	assert isinstance(tail, ECall)
	assert isinstance(tail.func, EPath) and tail.func.segments == ("crate", "helpers", "run")
	assert isinstance(tail.args[0], EClosure)


def test_errors_carry_json_pointers() -> None:
	with pytest.raises(ModelFormatError) as excinfo:
		load_program(_model({"kind": "struct", "fields": []}))
	assert excinfo.value.span.pointer == "/items/0/name"

	with pytest.raises(TypeExprError) as excinfo:
		load_program(_model({"kind": "struct", "name": "P", "fields": [{"name": "x", "type": "Vec<"}]}))
	assert excinfo.value.span.pointer == "/items/0/fields/0/type"

	with pytest.raises(ModelFormatError) as excinfo:
		load_program(
			_model(
				{
					"kind": "fn",
					"name": "f",
					"body": {"stmts": [{"kind": "expr", "expr": {"kind": "binary", "op": "<>", "left": {}, "right": {}}}]},
				}
			)
		)
	assert excinfo.value.span.pointer == "/items/0/body/stmts/0/expr/op"


def test_rejects_non_compound_assignment_operators() -> None:
	bad = {"kind": "assign_op", "op": "==", "target": {"kind": "lit"}, "value": {"kind": "lit"}}
	with pytest.raises(ModelFormatError):
		load_program(_model({"kind": "fn", "name": "f", "body": {"stmts": [{"kind": "expr", "expr": bad}]}}))


def test_missing_crate_is_rejected() -> None:
	with pytest.raises(ModelFormatError):
		load_program({"items": []})


def test_loads_from_file_and_reports_bad_json(tmp_path: Path) -> None:
	good = tmp_path / "model.json"
	good.write_text(json.dumps(_model({"kind": "struct", "name": "P", "fields": [{"name": "x", "type": "u8"}], "loc": {"line": 3, "column": 1}})))
	prog = load_program(good)
	assert prog.crate == "demo"
	assert prog.items[0].span.file == str(good)
	assert prog.items[0].span.line == 3

	bad = tmp_path / "bad.json"
	bad.write_text("{\n  \"crate\": ")
	with pytest.raises(ModelFormatError) as excinfo:
		load_program(bad)
	assert excinfo.value.span.file == str(bad)
	assert excinfo.value.span.line == 2

	with pytest.raises(ModelFormatError):
		load_program(tmp_path / "missing.json")
