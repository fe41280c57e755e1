# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Typed expression/statement tree for function bodies.

This is the body half of the program model handed to the pass by the
front-end. It is a sugar-free, already type-checked tree:
- every expression may carry its resolved static type in `ty` (None when the
  front-end did not record one);
- path expressions carry the definition they resolve to in `res` when known;
- method calls carry the type checker's chosen target in `res` when known;
- `for` loops, `?` and similar sugar have already been lowered into calls,
  matches and loops.

Nodes are plain dataclasses. `child_nodes()` lists the direct children of a
node in source (evaluation) order; walkers rely on that order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

from metacollect.core.span import Span
from metacollect.model.types import TypeShape

if TYPE_CHECKING:
	from metacollect.model.items import Item


class Expr:
	"""Base class for all expressions."""

	ty: Optional[TypeShape] = None
	span: Span = Span()


class Stmt:
	"""Base class for all statements."""

	span: Span = Span()


# Operator enums


class UnaryOp(Enum):
	"""Unary operators; the value is the surface token."""

	NOT = "!"    # logical or bitwise not
	NEG = "-"
	DEREF = "*"


class BinaryOp(Enum):
	"""Binary operators; the value is the surface token."""

	ADD = "+"
	SUB = "-"
	MUL = "*"
	DIV = "/"
	REM = "%"

	BIT_XOR = "^"
	BIT_AND = "&"
	BIT_OR = "|"
	SHL = "<<"
	SHR = ">>"

	EQ = "=="
	NE = "!="
	LT = "<"
	LE = "<="
	GE = ">="
	GT = ">"

	AND = "&&"  # short-circuit, never trait-backed
	OR = "||"

	@property
	def is_short_circuit(self) -> bool:
		return self in (BinaryOp.AND, BinaryOp.OR)

	@property
	def is_comparison(self) -> bool:
		return self in (BinaryOp.LT, BinaryOp.LE, BinaryOp.GE, BinaryOp.GT)


# Expressions


@dataclass
class EPath(Expr):
	"""Reference to a named value: local, function, constant, constructor."""

	segments: Tuple[str, ...]
	res: Optional[str] = None  # fully-qualified definition path, when resolved
	is_local: bool = False  # local binding / closure variable
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)

	def path_text(self) -> str:
		return "::".join(self.segments)


@dataclass
class ELit(Expr):
	"""Literal; `kind` is the front-end's literal class (int, float, str, ...)."""

	kind: str
	value: object = None
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class ECall(Expr):
	"""Call `func(args...)`. Only path callees are statically resolvable."""

	func: Expr
	args: List[Expr] = field(default_factory=list)
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EMethodCall(Expr):
	"""
	Method call with explicit receiver: `receiver.method(args...)`.

	`res` is the method path chosen by the type checker, if the front-end
	recorded it.
	"""

	receiver: Expr
	method: str
	args: List[Expr] = field(default_factory=list)
	res: Optional[str] = None
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EUnary(Expr):
	op: UnaryOp
	operand: Expr
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EBinary(Expr):
	op: BinaryOp
	left: Expr
	right: Expr
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EAssignOp(Expr):
	"""Compound assignment `target op= value`; `op` is the underlying binary operator."""

	op: BinaryOp
	target: Expr
	value: Expr
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EAssign(Expr):
	target: Expr
	value: Expr
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EIndex(Expr):
	base: Expr
	index: Expr
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EField(Expr):
	base: Expr
	name: str
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class ETuple(Expr):
	elems: List[Expr] = field(default_factory=list)
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EArray(Expr):
	elems: List[Expr] = field(default_factory=list)
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class ERepeat(Expr):
	"""Array repeat `[elem; count]`."""

	elem: Expr
	count: Expr
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EFieldInit:
	name: str
	value: Expr


@dataclass
class EStruct(Expr):
	"""Struct literal `Path { a: x, ..base }`."""

	path: Tuple[str, ...]
	fields: List[EFieldInit] = field(default_factory=list)
	base: Optional[Expr] = None
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class ECast(Expr):
	expr: Expr
	target: TypeShape
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EAddrOf(Expr):
	"""Borrow `&expr` / `&mut expr` (builtin, not trait-backed)."""

	expr: Expr
	mutable: bool = False
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EBlock(Expr):
	block: "Block"
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EIf(Expr):
	cond: Expr
	then: "Block"
	else_: Optional[Expr] = None
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EWhile(Expr):
	cond: Expr
	body: "Block"
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class ELoop(Expr):
	body: "Block"
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class MatchArm:
	"""Single match arm; the pattern is kept as opaque text."""

	pattern: str
	body: Expr
	guard: Optional[Expr] = None
	span: Span = field(default_factory=Span)


@dataclass
class EMatch(Expr):
	scrutinee: Expr
	arms: List[MatchArm] = field(default_factory=list)
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class Param:
	name: str
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EClosure(Expr):
	"""Closure; its body belongs to the enclosing function for record purposes."""

	params: List[Param]
	body: Expr
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EBreak(Expr):
	value: Optional[Expr] = None
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EContinue(Expr):
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EReturn(Expr):
	value: Optional[Expr] = None
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


@dataclass
class EOpaque(Expr):
	"""
	Expression form the model does not describe structurally (inline asm,
	unexpanded macro residue, ...). Its operands are still walked.
	"""

	label: str
	children: List[Expr] = field(default_factory=list)
	ty: Optional[TypeShape] = None
	span: Span = field(default_factory=Span)


# Statements


@dataclass
class Block:
	"""Statements followed by an optional tail expression."""

	stmts: List[Stmt] = field(default_factory=list)
	expr: Optional[Expr] = None
	span: Span = field(default_factory=Span)


@dataclass
class SLet(Stmt):
	pattern: str
	ty: Optional[TypeShape] = None
	init: Optional[Expr] = None
	else_block: Optional[Block] = None
	span: Span = field(default_factory=Span)


@dataclass
class SExpr(Stmt):
	expr: Expr
	span: Span = field(default_factory=Span)


@dataclass
class SItem(Stmt):
	"""Item declared inside a block; visited as its own item, not as body code."""

	item: "Item"
	span: Span = field(default_factory=Span)


Node = Union[Expr, Stmt, Block]


def child_nodes(node: Node) -> Tuple[Node, ...]:
	"""
	Direct children of a body node, in evaluation order.

	`SItem` has no children here: nested items are not part of the enclosing
	function's body.
	"""
	if isinstance(node, Block):
		out: List[Node] = list(node.stmts)
		if node.expr is not None:
			out.append(node.expr)
		return tuple(out)
	if isinstance(node, SLet):
		out = []
		if node.init is not None:
			out.append(node.init)
		if node.else_block is not None:
			out.append(node.else_block)
		return tuple(out)
	if isinstance(node, SExpr):
		return (node.expr,)
	if isinstance(node, SItem):
		return ()
	if isinstance(node, (EPath, ELit, EContinue)):
		return ()
	if isinstance(node, ECall):
		return (node.func, *node.args)
	if isinstance(node, EMethodCall):
		return (node.receiver, *node.args)
	if isinstance(node, EUnary):
		return (node.operand,)
	if isinstance(node, EBinary):
		return (node.left, node.right)
	if isinstance(node, (EAssignOp, EAssign)):
		return (node.target, node.value)
	if isinstance(node, EIndex):
		return (node.base, node.index)
	if isinstance(node, EField):
		return (node.base,)
	if isinstance(node, (ETuple, EArray)):
		return tuple(node.elems)
	if isinstance(node, ERepeat):
		return (node.elem, node.count)
	if isinstance(node, EStruct):
		out = [f.value for f in node.fields]
		if node.base is not None:
			out.append(node.base)
		return tuple(out)
	if isinstance(node, ECast):
		return (node.expr,)
	if isinstance(node, EAddrOf):
		return (node.expr,)
	if isinstance(node, EBlock):
		return (node.block,)
	if isinstance(node, EIf):
		out = [node.cond, node.then]
		if node.else_ is not None:
			out.append(node.else_)
		return tuple(out)
	if isinstance(node, EWhile):
		return (node.cond, node.body)
	if isinstance(node, ELoop):
		return (node.body,)
	if isinstance(node, EMatch):
		out = [node.scrutinee]
		for arm in node.arms:
			if arm.guard is not None:
				out.append(arm.guard)
			out.append(arm.body)
		return tuple(out)
	if isinstance(node, EClosure):
		return (node.body,)
	if isinstance(node, (EBreak, EReturn)):
		return (node.value,) if node.value is not None else ()
	if isinstance(node, EOpaque):
		return tuple(node.children)
	raise TypeError(f"unknown body node {type(node).__name__}")


__all__ = [
	"Expr", "Stmt", "Node",
	"UnaryOp", "BinaryOp",
	"EPath", "ELit", "ECall", "EMethodCall", "EUnary", "EBinary", "EAssignOp", "EAssign",
	"EIndex", "EField", "ETuple", "EArray", "ERepeat", "EFieldInit", "EStruct", "ECast",
	"EAddrOf", "EBlock", "EIf", "EWhile", "ELoop", "MatchArm", "EMatch", "Param",
	"EClosure", "EBreak", "EContinue", "EReturn", "EOpaque",
	"Block", "SLet", "SExpr", "SItem",
	"child_nodes",
]
