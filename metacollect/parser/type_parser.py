# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Type-expression parser.

Program models write types as Rust-like strings (`&'a mut [u8; 4]`,
`Vec<(i32, String)>`, `dyn Fn(u8) -> u8 + Send`). This module parses them
with lark into `TypeShape` trees. Results are cached: models repeat the same
few type strings many times and shapes are immutable.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken

from metacollect.core.errors import TypeExprError
from metacollect.model.types import (
	Bound,
	TyArray,
	TyDyn,
	TyFn,
	TyImpl,
	TyInfer,
	TyNever,
	TyPath,
	TyPtr,
	TyQPath,
	TyRef,
	TySlice,
	TyTuple,
	TypeShape,
)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)


@lru_cache(maxsize=4096)
def parse_type(text: str) -> TypeShape:
	"""Parse one type expression; raises `TypeExprError` on syntax errors."""
	if not text or not text.strip():
		raise TypeExprError("empty type expression", text=text)
	try:
		tree = _PARSER.parse(text)
	except UnexpectedInput as exc:
		raise TypeExprError(_describe(exc), text=text, column=_column(exc)) from exc
	return _build_type(tree)


def parse_trait_ref(text: str) -> TyPath:
	"""Parse a trait reference (`core::ops::Add<Rhs>`); must be a plain path."""
	ty = parse_type(text)
	if not isinstance(ty, TyPath):
		raise TypeExprError("expected a trait path", text=text)
	return ty


def _describe(exc: UnexpectedInput) -> str:
	if isinstance(exc, UnexpectedToken):
		if exc.token.type == "$END":
			return "unexpected end of type expression"
		return f"unexpected token {exc.token.value!r} in type expression"
	if isinstance(exc, UnexpectedCharacters):
		return f"unexpected character {exc.char!r} in type expression"
	return "malformed type expression"


def _column(exc: UnexpectedInput) -> Optional[int]:
	column = getattr(exc, "column", None)
	if isinstance(column, int) and column > 0:
		return column
	return None


def _build_type(tree: Tree) -> TypeShape:
	kind = _name(tree)
	if kind == "path_type":
		return _build_path(tree.children[0])
	if kind in ("ref_shared", "ref_mut"):
		lifetime = next((c.value for c in tree.children if isinstance(c, Token) and c.type == "LIFETIME"), None)
		return TyRef(inner=_build_type(_subtrees(tree)[0]), mutable=kind == "ref_mut", lifetime=lifetime)
	if kind in ("ptr_const", "ptr_mut"):
		return TyPtr(inner=_build_type(_subtrees(tree)[0]), mutable=kind == "ptr_mut")
	if kind == "tuple_type":
		return TyTuple(tuple(_build_type(c) for c in _subtrees(tree)))
	if kind == "array_type":
		elem, length = tree.children
		return TyArray(elem=_build_type(elem), length=str(length))
	if kind == "slice_type":
		return TySlice(_build_type(tree.children[0]))
	if kind == "fn_type":
		inputs, output = _fn_parts(_subtrees(tree))
		return TyFn(inputs=inputs, output=output)
	if kind == "never_type":
		return TyNever()
	if kind == "infer_type":
		return TyInfer()
	if kind == "dyn_type":
		return TyDyn(_build_bounds(tree.children))
	if kind == "impl_type":
		return TyImpl(_build_bounds(tree.children))
	if kind == "qpath_type":
		subtrees = _subtrees(tree)
		trait = _build_path(subtrees[1]) if len(subtrees) > 1 else None
		names = tuple(c.value for c in tree.children if isinstance(c, Token))
		return TyQPath(self_ty=_build_type(subtrees[0]), trait=trait, names=names)
	raise TypeError(f"unexpected type node {kind!r}")


def _build_path(tree: Tree) -> TyPath:
	segments = tuple(c.value for c in tree.children if isinstance(c, Token))
	args_tree = next((c for c in tree.children if isinstance(c, Tree)), None)
	if args_tree is None:
		return TyPath(path=segments)
	if _name(args_tree) == "paren_args":
		inputs, output = _fn_parts(_subtrees(args_tree))
		return TyPath(path=segments, inputs=inputs, output=output)
	lifetimes: List[str] = []
	args: List[TypeShape] = []
	bindings: List[Tuple[str, TypeShape]] = []
	for child in args_tree.children:
		if isinstance(child, Token):
			lifetimes.append(child.value)
		elif _name(child) == "assoc_binding":
			name_tok, bound_ty = child.children
			bindings.append((name_tok.value, _build_type(bound_ty)))
		else:
			args.append(_build_type(child))
	return TyPath(path=segments, args=tuple(args), lifetimes=tuple(lifetimes), bindings=tuple(bindings))


def _fn_parts(children: Sequence[Tree]) -> Tuple[Tuple[TypeShape, ...], Optional[TypeShape]]:
	inputs: List[TypeShape] = []
	output: Optional[TypeShape] = None
	for child in children:
		if _name(child) == "fn_output":
			output = _build_type(child.children[0])
		else:
			inputs.append(_build_type(child))
	return tuple(inputs), output


def _build_bounds(children: Sequence[object]) -> Tuple[Bound, ...]:
	bounds: List[Bound] = []
	for child in children:
		if isinstance(child, Token):
			if child.type == "LIFETIME":
				bounds.append(child.value)
			continue
		kind = _name(child)
		if kind == "path":
			bounds.append(_build_path(child))
		elif kind == "maybe_bound":
			bounds.append(f"?{_build_path(child.children[0])}")
		elif kind == "hr_bound":
			bounds.append(_build_path(child.children[-1]))
	return tuple(bounds)


def _subtrees(tree: Tree) -> List[Tree]:
	return [c for c in tree.children if isinstance(c, Tree)]


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)


__all__ = ["parse_type", "parse_trait_ref"]
