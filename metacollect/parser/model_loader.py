# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
JSON program-model loader.

The front-end hands the pass a type-checked program as a JSON document:

  {
    "crate": "demo",
    "items": [
      {"kind": "struct", "name": "Point", "fields": [{"name": "x", "type": "f64"}]},
      {"kind": "fn", "name": "main", "body": {"stmts": [...], "expr": null}},
      ...
    ]
  }

Every node may carry a `loc` object (`file`, `line`, `column`). Types are
type-expression strings parsed by `type_parser`. Errors are reported as
`ModelFormatError` / `TypeExprError` pinned to the node's JSON pointer, so the
driver can print a located diagnostic instead of a traceback.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from metacollect.core.errors import ModelFormatError, TypeExprError
from metacollect.core.span import Span
from metacollect.model.exprs import (
	BinaryOp,
	Block,
	EAddrOf,
	EArray,
	EAssign,
	EAssignOp,
	EBinary,
	EBlock,
	EBreak,
	ECall,
	ECast,
	EClosure,
	EContinue,
	EField,
	EFieldInit,
	EIf,
	EIndex,
	ELit,
	ELoop,
	EMatch,
	EMethodCall,
	EOpaque,
	EPath,
	ERepeat,
	EReturn,
	EStruct,
	ETuple,
	EUnary,
	EWhile,
	Expr,
	MatchArm,
	Param,
	SExpr,
	SItem,
	SLet,
	Stmt,
	UnaryOp,
)
from metacollect.model.items import (
	EnumDef,
	FieldDef,
	FieldsKind,
	FunctionDef,
	Generics,
	ImplDef,
	Item,
	ModuleDef,
	OtherItem,
	Program,
	StructDef,
	TraitDef,
	UnionDef,
	VariantDef,
)
from metacollect.model.types import TyImpl, TyPath, TypeShape
from metacollect.parser.type_parser import parse_trait_ref, parse_type

ModelSource = Union[str, Path, Mapping[str, Any]]

_UNARY_ALIASES = {"not": UnaryOp.NOT, "neg": UnaryOp.NEG, "deref": UnaryOp.DEREF}


def load_program(source: ModelSource) -> Program:
	"""Load a program model from a JSON file path or an already-decoded mapping."""
	if isinstance(source, Mapping):
		return ModelLoader().load(source)
	path = Path(source)
	try:
		text = path.read_text(encoding="utf-8")
	except OSError as err:
		raise ModelFormatError(
			f"cannot read program model: {err.strerror or err}", span=Span(file=str(path))
		) from err
	try:
		data = json.loads(text)
	except json.JSONDecodeError as err:
		raise ModelFormatError(
			f"invalid JSON: {err.msg}", span=Span(file=str(path), line=err.lineno, column=err.colno)
		) from err
	return ModelLoader(file=str(path)).load(data)


class ModelLoader:
	"""Builds model dataclasses from decoded JSON, tracking JSON pointers for errors."""

	def __init__(self, file: Optional[str] = None) -> None:
		self.file = file

	def load(self, data: Any) -> Program:
		obj = self._object(data, "")
		crate = obj.get("crate")
		if not isinstance(crate, str) or not crate:
			raise self._error("model must name its crate with a non-empty 'crate' string", obj, "")
		items = [self._item(d, f"/items/{i}") for i, d in enumerate(self._list(obj, "items", ""))]
		return Program(crate=crate, items=items)

	# Items

	def _item(self, data: Any, ptr: str) -> Item:
		obj = self._object(data, ptr)
		kind = self._str(obj, "kind", ptr)
		span = self._span(obj, ptr)
		if kind == "mod":
			return ModuleDef(name=self._str(obj, "name", ptr), items=self._items(obj, ptr), span=span)
		if kind == "struct":
			fields = self._fields(obj, ptr)
			return StructDef(
				name=self._str(obj, "name", ptr),
				kind=self._fields_kind(obj, fields, ptr),
				fields=fields,
				generics=self._generics(obj, ptr),
				span=span,
			)
		if kind == "union":
			return UnionDef(
				name=self._str(obj, "name", ptr),
				fields=self._fields(obj, ptr),
				generics=self._generics(obj, ptr),
				span=span,
			)
		if kind == "enum":
			variants = [self._variant(d, f"{ptr}/variants/{i}") for i, d in enumerate(self._list(obj, "variants", ptr))]
			return EnumDef(
				name=self._str(obj, "name", ptr), variants=variants, generics=self._generics(obj, ptr), span=span
			)
		if kind == "fn":
			return self._function(obj, ptr, span)
		if kind == "impl":
			trait_text = obj.get("trait")
			trait: Optional[TyPath] = None
			if trait_text is not None:
				trait = self._parse(parse_trait_ref, self._str(obj, "trait", ptr), obj, f"{ptr}/trait")
			return ImplDef(
				self_ty=self._type(obj, "self", ptr),
				trait=trait,
				items=self._items(obj, ptr),
				generics=self._generics(obj, ptr),
				span=span,
			)
		if kind == "trait":
			return TraitDef(
				name=self._str(obj, "name", ptr),
				items=self._items(obj, ptr),
				generics=self._generics(obj, ptr),
				span=span,
			)
		# const, static, use, type alias, macro, ...: nothing to collect.
		return OtherItem(name=self._str(obj, "name", ptr), kind=kind, span=span)

	def _items(self, obj: Dict[str, Any], ptr: str) -> List[Item]:
		return [self._item(d, f"{ptr}/items/{i}") for i, d in enumerate(self._list(obj, "items", ptr))]

	def _function(self, obj: Dict[str, Any], ptr: str, span: Span) -> FunctionDef:
		body_data = obj.get("body")
		return FunctionDef(
			name=self._str(obj, "name", ptr),
			params=[self._param(d, f"{ptr}/params/{i}") for i, d in enumerate(self._list(obj, "params", ptr))],
			ret=self._opt_type(obj, "ret", ptr),
			body=self._block(body_data, f"{ptr}/body") if body_data is not None else None,
			generics=self._generics(obj, ptr),
			span=span,
		)

	def _variant(self, data: Any, ptr: str) -> VariantDef:
		obj = self._object(data, ptr)
		fields = self._fields(obj, ptr)
		return VariantDef(
			name=self._str(obj, "name", ptr),
			kind=self._fields_kind(obj, fields, ptr),
			fields=fields,
			span=self._span(obj, ptr),
		)

	def _fields(self, obj: Dict[str, Any], ptr: str) -> List[FieldDef]:
		out: List[FieldDef] = []
		for i, d in enumerate(self._list(obj, "fields", ptr)):
			fptr = f"{ptr}/fields/{i}"
			fobj = self._object(d, fptr)
			name = fobj.get("name")
			if name is not None and not isinstance(name, str):
				raise self._error("field 'name' must be a string", fobj, fptr)
			out.append(FieldDef(ty=self._type(fobj, "type", fptr), name=name, span=self._span(fobj, fptr)))
		return out

	def _fields_kind(self, obj: Dict[str, Any], fields: List[FieldDef], ptr: str) -> FieldsKind:
		shape = obj.get("shape")
		if shape is None:
			if not fields:
				return FieldsKind.UNIT
			return FieldsKind.NAMED if all(f.name is not None for f in fields) else FieldsKind.TUPLE
		try:
			kind = FieldsKind(shape)
		except ValueError:
			raise self._error(
				f"unknown field shape {shape!r} (expected named, tuple or unit)", obj, f"{ptr}/shape"
			) from None
		if kind is FieldsKind.UNIT and fields:
			raise self._error("unit shape cannot declare fields", obj, f"{ptr}/shape")
		return kind

	def _generics(self, obj: Dict[str, Any], ptr: str) -> Generics:
		"""
		Accepts `{"types": [...], "lifetimes": [...], "consts": [...], "bounds":
		{"T": ["Ord"]}}` or a flat list such as `["'a", "T: Ord + Clone", "const N"]`.
		"""
		data = obj.get("generics")
		gptr = f"{ptr}/generics"
		if data is None:
			return Generics()
		if isinstance(data, list):
			generics = Generics()
			for i, entry in enumerate(data):
				if not isinstance(entry, str) or not entry.strip():
					raise self._error("generic parameter must be a non-empty string", obj, f"{gptr}/{i}")
				entry = entry.strip()
				if entry.startswith("'"):
					generics.lifetimes.append(entry)
				elif entry.startswith("const "):
					generics.consts.append(entry[len("const "):].split(":")[0].strip())
				else:
					name, _, bounds = entry.partition(":")
					name = name.strip()
					generics.types.append(name)
					if bounds.strip():
						generics.bounds.extend(self._bounds(name, bounds, obj, f"{gptr}/{i}"))
			return generics
		gobj = self._object(data, gptr)
		generics = Generics(
			types=self._str_list(gobj, "types", gptr),
			lifetimes=self._str_list(gobj, "lifetimes", gptr),
			consts=self._str_list(gobj, "consts", gptr),
		)
		bounds = gobj.get("bounds")
		if bounds is None:
			return generics
		bobj = self._object(bounds, f"{gptr}/bounds")
		for name, traits in bobj.items():
			tptr = f"{gptr}/bounds/{name}"
			if not isinstance(traits, list) or not all(isinstance(t, str) for t in traits):
				raise self._error("bounds must map parameter names to lists of trait strings", gobj, tptr)
			for j, text in enumerate(traits):
				generics.bounds.extend(self._bounds(name, text, bobj, f"{tptr}/{j}"))
		return generics

	def _bounds(self, name: str, text: str, obj: Dict[str, Any], ptr: str) -> List[Tuple[str, TyPath]]:
		"""Trait bounds of one parameter; lifetimes and `?Sized` carry no obligation."""
		shape = self._parse(parse_type, f"impl {text}", obj, ptr)
		if not isinstance(shape, TyImpl):
			raise self._error(f"malformed bounds for generic parameter {name!r}", obj, ptr)
		return [(name, b) for b in shape.bounds if isinstance(b, TyPath)]

	def _param(self, data: Any, ptr: str) -> Param:
		obj = self._object(data, ptr)
		return Param(name=self._str(obj, "name", ptr), ty=self._opt_type(obj, "type", ptr), span=self._span(obj, ptr))

	# Bodies

	def _block(self, data: Any, ptr: str) -> Block:
		obj = self._object(data, ptr)
		stmts = [self._stmt(d, f"{ptr}/stmts/{i}") for i, d in enumerate(self._list(obj, "stmts", ptr))]
		tail = obj.get("expr")
		return Block(
			stmts=stmts,
			expr=self._expr(tail, f"{ptr}/expr") if tail is not None else None,
			span=self._span(obj, ptr),
		)

	def _stmt(self, data: Any, ptr: str) -> Stmt:
		obj = self._object(data, ptr)
		kind = self._str(obj, "kind", ptr)
		span = self._span(obj, ptr)
		if kind == "let":
			pattern = obj.get("pattern", "_")
			if not isinstance(pattern, str):
				raise self._error("let 'pattern' must be a string", obj, f"{ptr}/pattern")
			else_data = obj.get("else")
			return SLet(
				pattern=pattern,
				ty=self._opt_type(obj, "type", ptr),
				init=self._opt_expr(obj, "init", ptr),
				else_block=self._block(else_data, f"{ptr}/else") if else_data is not None else None,
				span=span,
			)
		if kind == "expr":
			return SExpr(expr=self._expr(obj.get("expr"), f"{ptr}/expr"), span=span)
		if kind == "item":
			return SItem(item=self._item(obj.get("item"), f"{ptr}/item"), span=span)
		raise self._error(f"unknown statement kind {kind!r} (expected let, expr or item)", obj, f"{ptr}/kind")

	def _expr(self, data: Any, ptr: str) -> Expr:
		obj = self._object(data, ptr)
		kind = self._str(obj, "kind", ptr)
		ty = self._opt_type(obj, "type", ptr)
		span = self._span(obj, ptr)

		def sub(key: str) -> Expr:
			return self._expr(obj.get(key), f"{ptr}/{key}")

		def opt(key: str) -> Optional[Expr]:
			return self._opt_expr(obj, key, ptr)

		def many(key: str) -> List[Expr]:
			return self._exprs(obj, key, ptr)

		if kind == "path":
			return EPath(
				segments=self._segments(obj, "path", ptr),
				res=self._opt_str(obj, "res", ptr),
				is_local=bool(obj.get("local", False)),
				ty=ty,
				span=span,
			)
		if kind == "lit":
			lit_kind = obj.get("lit", "unknown")
			if not isinstance(lit_kind, str):
				raise self._error("literal 'lit' must be a string", obj, f"{ptr}/lit")
			return ELit(kind=lit_kind, value=obj.get("value"), ty=ty, span=span)
		if kind == "call":
			return ECall(func=sub("func"), args=many("args"), ty=ty, span=span)
		if kind == "method":
			return EMethodCall(
				receiver=sub("receiver"),
				method=self._str(obj, "method", ptr),
				args=many("args"),
				res=self._opt_str(obj, "res", ptr),
				ty=ty,
				span=span,
			)
		if kind == "unary":
			return EUnary(op=self._unary_op(obj, ptr), operand=sub("operand"), ty=ty, span=span)
		if kind == "binary":
			return EBinary(op=self._binary_op(obj, ptr), left=sub("left"), right=sub("right"), ty=ty, span=span)
		if kind == "assign_op":
			return EAssignOp(op=self._assign_op(obj, ptr), target=sub("target"), value=sub("value"), ty=ty, span=span)
		if kind == "assign":
			return EAssign(target=sub("target"), value=sub("value"), ty=ty, span=span)
		if kind == "index":
			return EIndex(base=sub("base"), index=sub("index"), ty=ty, span=span)
		if kind == "field":
			name = obj.get("name")
			if isinstance(name, int) and not isinstance(name, bool):
				name = str(name)
			if not isinstance(name, str):
				raise self._error("field access needs a 'name' (string or tuple index)", obj, f"{ptr}/name")
			return EField(base=sub("base"), name=name, ty=ty, span=span)
		if kind == "tuple":
			return ETuple(elems=many("elems"), ty=ty, span=span)
		if kind == "array":
			return EArray(elems=many("elems"), ty=ty, span=span)
		if kind == "repeat":
			return ERepeat(elem=sub("elem"), count=sub("count"), ty=ty, span=span)
		if kind == "struct":
			inits: List[EFieldInit] = []
			for i, d in enumerate(self._list(obj, "fields", ptr)):
				iptr = f"{ptr}/fields/{i}"
				iobj = self._object(d, iptr)
				inits.append(EFieldInit(name=self._str(iobj, "name", iptr), value=self._expr(iobj.get("value"), f"{iptr}/value")))
			return EStruct(path=self._segments(obj, "path", ptr), fields=inits, base=opt("base"), ty=ty, span=span)
		if kind == "cast":
			return ECast(expr=sub("expr"), target=self._type(obj, "to", ptr), ty=ty, span=span)
		if kind == "addr_of":
			return EAddrOf(expr=sub("expr"), mutable=bool(obj.get("mut", False)), ty=ty, span=span)
		if kind == "block":
			return EBlock(block=self._block(obj.get("block"), f"{ptr}/block"), ty=ty, span=span)
		if kind == "if":
			return EIf(
				cond=sub("cond"), then=self._block(obj.get("then"), f"{ptr}/then"), else_=opt("else"), ty=ty, span=span
			)
		if kind == "while":
			return EWhile(cond=sub("cond"), body=self._block(obj.get("body"), f"{ptr}/body"), ty=ty, span=span)
		if kind == "loop":
			return ELoop(body=self._block(obj.get("body"), f"{ptr}/body"), ty=ty, span=span)
		if kind == "match":
			arms = [self._arm(d, f"{ptr}/arms/{i}") for i, d in enumerate(self._list(obj, "arms", ptr))]
			return EMatch(scrutinee=sub("scrutinee"), arms=arms, ty=ty, span=span)
		if kind == "closure":
			params = [self._param(d, f"{ptr}/params/{i}") for i, d in enumerate(self._list(obj, "params", ptr))]
			return EClosure(params=params, body=sub("body"), ty=ty, span=span)
		if kind == "break":
			return EBreak(value=opt("value"), ty=ty, span=span)
		if kind == "continue":
			return EContinue(ty=ty, span=span)
		if kind == "return":
			return EReturn(value=opt("value"), ty=ty, span=span)
		# Anything else is an opaque form; its operands are still walked.
		return EOpaque(label=kind, children=many("children"), ty=ty, span=span)

	def _exprs(self, obj: Dict[str, Any], key: str, ptr: str) -> List[Expr]:
		return [self._expr(d, f"{ptr}/{key}/{i}") for i, d in enumerate(self._list(obj, key, ptr))]

	def _opt_expr(self, obj: Dict[str, Any], key: str, ptr: str) -> Optional[Expr]:
		data = obj.get(key)
		if data is None:
			return None
		return self._expr(data, f"{ptr}/{key}")

	def _arm(self, data: Any, ptr: str) -> MatchArm:
		obj = self._object(data, ptr)
		pattern = obj.get("pattern", "_")
		if not isinstance(pattern, str):
			raise self._error("match arm 'pattern' must be a string", obj, f"{ptr}/pattern")
		return MatchArm(
			pattern=pattern,
			body=self._expr(obj.get("body"), f"{ptr}/body"),
			guard=self._opt_expr(obj, "guard", ptr),
			span=self._span(obj, ptr),
		)

	# Operators

	def _unary_op(self, obj: Dict[str, Any], ptr: str) -> UnaryOp:
		token = self._str(obj, "op", ptr)
		if token in _UNARY_ALIASES:
			return _UNARY_ALIASES[token]
		try:
			return UnaryOp(token)
		except ValueError:
			raise self._error(f"unknown unary operator {token!r}", obj, f"{ptr}/op") from None

	def _binary_op(self, obj: Dict[str, Any], ptr: str) -> BinaryOp:
		token = self._str(obj, "op", ptr)
		try:
			return BinaryOp(token)
		except ValueError:
			raise self._error(f"unknown binary operator {token!r}", obj, f"{ptr}/op") from None

	def _assign_op(self, obj: Dict[str, Any], ptr: str) -> BinaryOp:
		"""Compound assignment operator, written either `+=` or `+`."""
		token = self._str(obj, "op", ptr)
		base = token[:-1] if token.endswith("=") and token not in ("==", "!=", "<=", ">=") else token
		try:
			op = BinaryOp(base)
		except ValueError:
			op = None
		if op is None or op.is_comparison or op.is_short_circuit or op in (BinaryOp.EQ, BinaryOp.NE):
			raise self._error(f"unknown compound assignment operator {token!r}", obj, f"{ptr}/op")
		return op

	# Scalars and helpers

	def _type(self, obj: Dict[str, Any], key: str, ptr: str) -> TypeShape:
		return self._parse(parse_type, self._str(obj, key, ptr), obj, f"{ptr}/{key}")

	def _opt_type(self, obj: Dict[str, Any], key: str, ptr: str) -> Optional[TypeShape]:
		if obj.get(key) is None:
			return None
		return self._type(obj, key, ptr)

	def _parse(self, fn: Callable[[str], Any], text: str, obj: Dict[str, Any], ptr: str) -> Any:
		try:
			return fn(text)
		except TypeExprError as err:
			raise TypeExprError(err.message, text=err.text, column=err.column, span=self._span(obj, ptr)) from err

	def _segments(self, obj: Dict[str, Any], key: str, ptr: str) -> Tuple[str, ...]:
		value = obj.get(key)
		if isinstance(value, str) and value:
			segments = tuple(value.split("::"))
		elif isinstance(value, list) and value and all(isinstance(s, str) for s in value):
			segments = tuple(value)
		else:
			raise self._error(f"'{key}' must be a path string or a list of segments", obj, f"{ptr}/{key}")
		if any(not s for s in segments):
			raise self._error(f"empty segment in path {value!r}", obj, f"{ptr}/{key}")
		return segments

	def _object(self, data: Any, ptr: str) -> Dict[str, Any]:
		if not isinstance(data, dict):
			raise ModelFormatError(
				f"expected an object, got {_json_kind(data)}", span=Span(file=self.file, pointer=ptr or "/")
			)
		return data

	def _list(self, obj: Dict[str, Any], key: str, ptr: str) -> List[Any]:
		value = obj.get(key, [])
		if value is None:
			return []
		if not isinstance(value, list):
			raise self._error(f"'{key}' must be a list, got {_json_kind(value)}", obj, f"{ptr}/{key}")
		return value

	def _str(self, obj: Dict[str, Any], key: str, ptr: str) -> str:
		value = obj.get(key)
		if not isinstance(value, str) or not value:
			raise self._error(f"missing or non-string '{key}'", obj, f"{ptr}/{key}")
		return value

	def _opt_str(self, obj: Dict[str, Any], key: str, ptr: str) -> Optional[str]:
		value = obj.get(key)
		if value is None:
			return None
		if not isinstance(value, str):
			raise self._error(f"'{key}' must be a string", obj, f"{ptr}/{key}")
		return value

	def _str_list(self, obj: Dict[str, Any], key: str, ptr: str) -> List[str]:
		values = self._list(obj, key, ptr)
		if not all(isinstance(v, str) for v in values):
			raise self._error(f"'{key}' must be a list of strings", obj, f"{ptr}/{key}")
		return list(values)

	def _span(self, obj: Dict[str, Any], ptr: str) -> Span:
		span = Span.from_loc(obj.get("loc"), pointer=ptr or "/")
		if span.file is None and self.file is not None:
			span = Span(self.file, span.line, span.column, span.end_line, span.end_column, span.pointer)
		return span

	def _error(self, message: str, obj: Dict[str, Any], ptr: str) -> ModelFormatError:
		return ModelFormatError(message, span=self._span(obj, ptr))


def _json_kind(value: Any) -> str:
	if value is None:
		return "null"
	if isinstance(value, bool):
		return "boolean"
	if isinstance(value, (int, float)):
		return "number"
	if isinstance(value, str):
		return "string"
	if isinstance(value, list):
		return "array"
	return "object"


__all__ = ["load_program", "ModelLoader", "ModelSource"]
