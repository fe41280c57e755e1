# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Trait resolution interface used by the function body walker.

`TraitResolver.resolve` walks an ordered candidate list and returns the first
candidate with an implementation for the operand types. Concrete resolvers
only implement `lookup` (one candidate at a time), so the fallback order is
enforced here and query order is observable by subclasses.

Method-call resolution is an optional capability: the base implementation
returns None, which the walker treats as "not resolvable" (no record).
"""

from __future__ import annotations

from typing import Optional, Sequence

from metacollect.model.types import TypeShape
from metacollect.records import ResolvedTarget
from metacollect.traits.catalog import TraitCandidate


class TraitResolver:
	"""Base resolver: first match wins, lookups stop at the first match."""

	def resolve(
		self,
		candidates: Sequence[TraitCandidate],
		operand_types: Sequence[TypeShape],
	) -> Optional[ResolvedTarget]:
		for candidate in candidates:
			target = self.lookup(candidate, operand_types)
			if target is not None:
				return target
		return None

	def lookup(
		self,
		candidate: TraitCandidate,
		operand_types: Sequence[TypeShape],
	) -> Optional[ResolvedTarget]:
		raise NotImplementedError

	def resolve_method(self, receiver_type: TypeShape, method: str) -> Optional[ResolvedTarget]:
		return None


class NullResolver(TraitResolver):
	"""Resolves nothing; direct calls are still recorded."""

	def lookup(
		self,
		candidate: TraitCandidate,
		operand_types: Sequence[TypeShape],
	) -> Optional[ResolvedTarget]:
		return None


__all__ = ["TraitResolver", "NullResolver"]
