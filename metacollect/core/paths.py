# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Item-path bookkeeping.

`PathStack` tracks the names of the items currently being visited (modules,
types, functions, impl blocks). Records never hold a reference to the stack:
they carry a `QualifiedPath` snapshot taken at emission time. Walkers receive
a read-only `VisitContext` instead of the stack itself.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from .errors import InternalConsistencyError


@dataclass(frozen=True)
class QualifiedPath:
	"""Non-empty `::`-joined name sequence, program root first."""

	segments: Tuple[str, ...]

	def __post_init__(self) -> None:
		if not self.segments:
			raise ValueError("qualified path must have at least one segment")

	def __str__(self) -> str:
		return "::".join(self.segments)


@dataclass(frozen=True)
class VisitContext:
	"""Read-only view of where the traversal currently is."""

	crate: str
	path: QualifiedPath


class PathStack:
	"""
	LIFO stack of enclosing item names for a single traversal.

	`enter`/`exit` must be strictly nested; prefer `entered()` which pops on
	every exit path. `check_empty()` is the teardown check: a non-empty stack
	means a push without a matching pop somewhere in the pass.
	"""

	def __init__(self, root: str) -> None:
		if not root:
			raise ValueError("path stack root must be a non-empty name")
		self.root = root
		self._items: List[str] = []

	def enter(self, name: str) -> None:
		self._items.append(name)

	def exit(self) -> str:
		if not self._items:
			raise InternalConsistencyError("item path stack popped while empty")
		return self._items.pop()

	@contextmanager
	def entered(self, name: str) -> Iterator[QualifiedPath]:
		self.enter(name)
		depth = len(self._items)
		try:
			yield self.current_path()
		finally:
			if len(self._items) != depth or self._items[-1] != name:
				leftover = tuple(self._items)
				self._items.clear()
				raise InternalConsistencyError(f"item path stack unbalanced while leaving '{name}'", leftover=leftover)
			self._items.pop()

	def current_path(self) -> QualifiedPath:
		return QualifiedPath((self.root, *self._items))

	def context(self) -> VisitContext:
		return VisitContext(crate=self.root, path=self.current_path())

	@property
	def depth(self) -> int:
		return len(self._items)

	def is_empty(self) -> bool:
		return not self._items

	def check_empty(self) -> None:
		if self._items:
			leftover = tuple(self._items)
			self._items.clear()
			raise InternalConsistencyError("item path stack not empty on leaving crate", leftover=leftover)


__all__ = ["QualifiedPath", "VisitContext", "PathStack"]
