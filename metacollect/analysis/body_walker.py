# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Function body walker.

Visits every node of a function body in pre-order: each expression is
classified (and, if call-shaped, resolved and recorded) before its children
are visited, and children are always visited whether or not the parent was
classified or resolved. Traversal uses an explicit work stack so long
expression chains (`a + b + c + ...` is left-nested) do not hit the
interpreter recursion limit.

Anything that cannot be classified or resolved is skipped silently; the walker
never raises for model content.

Resolution is never attempted through generic type parameters of the
enclosing items: an operator whose operand types mention one (`T + T` inside
`fn f<T: Add>`) is skipped, as are method calls on such receivers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Optional

from metacollect.core.paths import VisitContext
from metacollect.model.exprs import Block, Expr, Node, SItem, child_nodes
from metacollect.model.items import Item
from metacollect.model.types import (
	TyArray,
	TyDyn,
	TyFn,
	TyImpl,
	TyPath,
	TyPtr,
	TyQPath,
	TyRef,
	TySlice,
	TyTuple,
	TypeShape,
)
from metacollect.records import CallRecord, RecordSink, ResolvedTarget
from metacollect.traits.resolver import TraitResolver

from .classifier import ClassifiedOp, DirectCallOp, MethodCallOp, classify


@dataclass
class CollectStats:
	"""Counters for one run of the pass (reported by `--stats`)."""

	items: int = 0
	functions: int = 0
	fields: int = 0
	classified: int = 0
	resolved: int = 0
	skipped: int = 0

	def summary(self) -> str:
		return (
			f"items={self.items} functions={self.functions} fields={self.fields} "
			f"classified={self.classified} resolved={self.resolved} skipped={self.skipped}"
		)


class FunctionBodyWalker:
	"""
	Emits one call record per resolved call-shaped expression of a body.

	`on_item` receives items declared inside the body (in statement position)
	at the point they appear; the top-level pass visits them as items of
	their own under the current path.
	"""

	def __init__(
		self,
		resolver: TraitResolver,
		sink: RecordSink,
		*,
		stats: Optional[CollectStats] = None,
		on_item: Optional[Callable[[Item], None]] = None,
	) -> None:
		self.resolver = resolver
		self.sink = sink
		self.stats = stats if stats is not None else CollectStats()
		self.on_item = on_item

	def walk(self, ctx: VisitContext, body: Block, *, generic_params: FrozenSet[str] = frozenset()) -> None:
		work: List[Node] = [body]
		while work:
			node = work.pop()
			if isinstance(node, SItem):
				if self.on_item is not None:
					self.on_item(node.item)
				continue
			if isinstance(node, Expr):
				self._visit_expr(ctx, node, generic_params)
			work.extend(reversed(child_nodes(node)))

	def _visit_expr(self, ctx: VisitContext, expr: Expr, generic_params: FrozenSet[str]) -> None:
		op = classify(expr)
		if op is None:
			return
		self.stats.classified += 1
		target = self._resolve(op, generic_params)
		if target is None:
			self.stats.skipped += 1
			return
		self.stats.resolved += 1
		self.sink.write_call(CallRecord(caller=ctx.path, target=target, kind=op.kind, span=expr.span))

	def _resolve(self, op: ClassifiedOp, generic_params: FrozenSet[str]) -> Optional[ResolvedTarget]:
		if isinstance(op, DirectCallOp):
			# `T::new()` without a recorded resolution names a generic parameter.
			if not op.resolved and op.segments[0] in generic_params:
				return None
			return ResolvedTarget(method_path=op.target)
		if isinstance(op, MethodCallOp):
			if op.res is not None:
				return ResolvedTarget(method_path=op.res)
			receiver = op.receiver_type
			if receiver is None or mentions_params(receiver, generic_params):
				return None
			return self.resolver.resolve_method(receiver, op.method)
		operands = []
		for ty in op.operands:
			if ty is None or mentions_params(ty, generic_params):
				return None
			operands.append(ty)
		return self.resolver.resolve(op.candidates, operands)


def mentions_params(ty: TypeShape, params: FrozenSet[str]) -> bool:
	"""True if `ty` refers to any of the generic parameter names in `params`."""
	if not params:
		return False
	work: List[TypeShape] = [ty]
	while work:
		cur = work.pop()
		if isinstance(cur, TyPath):
			if cur.path[0] in params:
				return True
			work.extend(cur.args)
			work.extend(t for _, t in cur.bindings)
			work.extend(cur.inputs or ())
			if cur.output is not None:
				work.append(cur.output)
		elif isinstance(cur, (TyRef, TyPtr)):
			work.append(cur.inner)
		elif isinstance(cur, TyTuple):
			work.extend(cur.elems)
		elif isinstance(cur, TyArray):
			if cur.length in params:
				return True
			work.append(cur.elem)
		elif isinstance(cur, TySlice):
			work.append(cur.elem)
		elif isinstance(cur, TyFn):
			work.extend(cur.inputs)
			if cur.output is not None:
				work.append(cur.output)
		elif isinstance(cur, (TyDyn, TyImpl)):
			work.extend(b for b in cur.bounds if isinstance(b, TyPath))
		elif isinstance(cur, TyQPath):
			work.append(cur.self_ty)
	return False


__all__ = ["CollectStats", "FunctionBodyWalker", "mentions_params"]
