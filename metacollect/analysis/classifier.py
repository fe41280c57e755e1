# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Operation classifier.

Maps one expression node to the abstract operation it performs, if that
operation is call-shaped:

- `f(x)` with a plain path callee            -> DirectCallOp
- `recv.m(x)`                                  -> MethodCallOp
- `!x`, `-x`, `*x`                             -> UnaryTraitOp
- `a + b`, `a & b`, `a << b`, ...              -> BinaryTraitOp
- `a == b`, `a < b`, ...                       -> ComparisonOp
- `a += b`, ...                                -> CompoundAssignOp
- `a[i]`                                       -> IndexOp

Everything else (literals, `&&`/`||`, casts, borrows, control flow, calls
through computed callees) is not classified. The classifier does not look at
children; the body walker descends separately.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple, Union

from metacollect.model.exprs import (
	BinaryOp,
	EAssignOp,
	EBinary,
	ECall,
	EIndex,
	EMethodCall,
	EPath,
	EUnary,
	Expr,
	UnaryOp,
)
from metacollect.model.types import TypeShape, strip_refs
from metacollect.records import CallKind
from metacollect.traits.catalog import (
	BINARY_CANDIDATES,
	COMPOUND_CANDIDATES,
	INDEX_CANDIDATES,
	UNARY_CANDIDATES,
	TraitCandidate,
)

Candidates = Tuple[TraitCandidate, ...]
# Operand types as recorded by the type checker; None when the model has none.
Operands = Tuple[Optional[TypeShape], ...]


@dataclass(frozen=True)
class DirectCallOp:
	"""Call through a plain path; `target` is the resolved definition path, or the path as written."""

	target: str
	segments: Tuple[str, ...]
	resolved: bool = False
	candidates: Candidates = ()
	operands: Operands = ()
	kind: ClassVar[CallKind] = CallKind.DIRECT_CALL


@dataclass(frozen=True)
class MethodCallOp:
	method: str
	res: Optional[str] = None
	candidates: Candidates = ()
	operands: Operands = ()  # (receiver type,)
	kind: ClassVar[CallKind] = CallKind.METHOD_CALL

	@property
	def receiver_type(self) -> Optional[TypeShape]:
		return self.operands[0] if self.operands else None


@dataclass(frozen=True)
class UnaryTraitOp:
	op: UnaryOp
	candidates: Candidates
	operands: Operands
	kind: ClassVar[CallKind] = CallKind.UNARY


@dataclass(frozen=True)
class BinaryTraitOp:
	op: BinaryOp
	candidates: Candidates
	operands: Operands
	kind: ClassVar[CallKind] = CallKind.BINARY


@dataclass(frozen=True)
class ComparisonOp:
	"""`== != < <= >= >`; ordering comparisons carry the Ord -> PartialOrd fallback."""

	op: BinaryOp
	candidates: Candidates
	operands: Operands
	kind: ClassVar[CallKind] = CallKind.COMPARISON


@dataclass(frozen=True)
class CompoundAssignOp:
	op: BinaryOp
	candidates: Candidates
	operands: Operands
	kind: ClassVar[CallKind] = CallKind.COMPOUND_ASSIGN


@dataclass(frozen=True)
class IndexOp:
	candidates: Candidates
	operands: Operands
	kind: ClassVar[CallKind] = CallKind.INDEX


ClassifiedOp = Union[
	DirectCallOp,
	MethodCallOp,
	UnaryTraitOp,
	BinaryTraitOp,
	ComparisonOp,
	CompoundAssignOp,
	IndexOp,
]


def classify(expr: Expr) -> Optional[ClassifiedOp]:
	"""Classify a single expression node; None means "not call-shaped"."""
	if isinstance(expr, ECall):
		callee = expr.func
		if not isinstance(callee, EPath) or callee.is_local:
			return None
		return DirectCallOp(
			target=callee.res or callee.path_text(),
			segments=callee.segments,
			resolved=callee.res is not None,
		)
	if isinstance(expr, EMethodCall):
		return MethodCallOp(method=expr.method, res=expr.res, operands=(expr.receiver.ty,))
	if isinstance(expr, EUnary):
		return UnaryTraitOp(op=expr.op, candidates=UNARY_CANDIDATES[expr.op], operands=(expr.operand.ty,))
	if isinstance(expr, EBinary):
		if expr.op.is_short_circuit:
			return None
		operands = (expr.left.ty, expr.right.ty)
		if expr.op.is_comparison or expr.op in (BinaryOp.EQ, BinaryOp.NE):
			return ComparisonOp(op=expr.op, candidates=BINARY_CANDIDATES[expr.op], operands=operands)
		return BinaryTraitOp(op=expr.op, candidates=BINARY_CANDIDATES[expr.op], operands=operands)
	if isinstance(expr, EAssignOp):
		candidates = COMPOUND_CANDIDATES.get(expr.op)
		if candidates is None:
			return None
		return CompoundAssignOp(op=expr.op, candidates=candidates, operands=(expr.target.ty, expr.value.ty))
	if isinstance(expr, EIndex):
		# Indexing auto-derefs the base: `v[i]` on `&Vec<T>` indexes the Vec.
		base = strip_refs(expr.base.ty) if expr.base.ty is not None else None
		return IndexOp(candidates=INDEX_CANDIDATES, operands=(base, expr.index.ty))
	return None


__all__ = [
	"ClassifiedOp",
	"DirectCallOp",
	"MethodCallOp",
	"UnaryTraitOp",
	"BinaryTraitOp",
	"ComparisonOp",
	"CompoundAssignOp",
	"IndexOp",
	"classify",
]
