# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Top-level collection pass.

`Metacollect` visits the items of a program in source order, maintaining the
item path stack:

- data types (struct/union/enum) push their name and hand off to the
  declaration walker;
- functions push their name and hand off to the body walker;
- modules, traits and impl blocks push their segment and recurse;
- other items (consts, uses, aliases, ...) contribute nothing.

The pass is `check_crate` -> `visit_item`* -> `check_crate_post`; `run()`
drives all three. Every push is scoped with `PathStack.entered`, and
`check_crate_post` verifies the stack is empty. A violation raises
`InternalConsistencyError` and is never converted into a diagnostic.
"""

from __future__ import annotations

from typing import FrozenSet, Optional

from metacollect.core.paths import PathStack
from metacollect.model.items import (
	EnumDef,
	FunctionDef,
	ImplDef,
	Item,
	ModuleDef,
	OtherItem,
	Program,
	StructDef,
	TraitDef,
	UnionDef,
	impl_segment,
)
from metacollect.records import RecordSink
from metacollect.traits.resolver import TraitResolver

from .body_walker import CollectStats, FunctionBodyWalker
from .decl_walker import DeclarationWalker


class Metacollect:
	"""One pass object may run many times; each run starts from a fresh stack."""

	def __init__(self, resolver: TraitResolver, sink: RecordSink) -> None:
		self.resolver = resolver
		self.sink = sink
		self.stats = CollectStats()
		self._stack: Optional[PathStack] = None
		self._decls = DeclarationWalker(sink)
		self._bodies = FunctionBodyWalker(resolver, sink, stats=self.stats, on_item=self.visit_item)

	@property
	def stack(self) -> PathStack:
		if self._stack is None:
			raise RuntimeError("check_crate() has not been called")
		return self._stack

	def run(self, program: Program) -> CollectStats:
		self.check_crate(program)
		for item in program.items:
			self.visit_item(item)
		self.check_crate_post()
		return self.stats

	def check_crate(self, program: Program) -> None:
		self._stack = PathStack(program.crate)
		self.stats = CollectStats()
		self._bodies.stats = self.stats

	def visit_item(self, item: Item, outer_generics: FrozenSet[str] = frozenset()) -> None:
		"""
		Visit one item under the current path. `outer_generics` are the type
		parameters in scope from enclosing impls/traits; items nested in
		function bodies start with none.
		"""
		stack = self.stack
		self.stats.items += 1
		if isinstance(item, (StructDef, UnionDef, EnumDef)):
			with stack.entered(item.name):
				self.stats.fields += self._decls.walk(stack.context(), item)
		elif isinstance(item, FunctionDef):
			with stack.entered(item.name):
				self.stats.functions += 1
				if item.body is not None:
					params = outer_generics | item.generics.param_names()
					self._bodies.walk(stack.context(), item.body, generic_params=params)
		elif isinstance(item, ImplDef):
			params = outer_generics | item.generics.param_names()
			with stack.entered(impl_segment(item)):
				for sub in item.items:
					self.visit_item(sub, params)
		elif isinstance(item, TraitDef):
			# Default method bodies are generic over the implementing type.
			params = outer_generics | item.generics.param_names() | {"Self"}
			with stack.entered(item.name):
				for sub in item.items:
					self.visit_item(sub, params)
		elif isinstance(item, ModuleDef):
			with stack.entered(item.name):
				for sub in item.items:
					self.visit_item(sub)
		elif isinstance(item, OtherItem):
			pass
		else:
			raise TypeError(f"unknown item {type(item).__name__}")

	def check_crate_post(self) -> None:
		self.stack.check_empty()
		self.sink.flush()


__all__ = ["Metacollect"]
