# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Declaration walker: one field-type record per declared field.

The owner of every record is the declaration's own path (taken from the
visit context, which already includes the type's name). Enum variants do not
add a path segment; the variant name travels on the record instead. Field
types are recorded exactly as declared, without alias resolution or generic
substitution.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

from metacollect.core.paths import VisitContext
from metacollect.model.items import EnumDef, FieldDef, StructDef, UnionDef
from metacollect.records import FieldRecord, RecordSink

DataDecl = Union[StructDef, UnionDef, EnumDef]


class DeclarationWalker:
	def __init__(self, sink: RecordSink) -> None:
		self.sink = sink

	def walk(self, ctx: VisitContext, decl: DataDecl) -> int:
		"""Emit records for `decl`; returns how many were emitted."""
		if isinstance(decl, EnumDef):
			count = 0
			for variant in decl.variants:
				count += self._emit(ctx, variant.fields, variant=variant.name)
			return count
		return self._emit(ctx, decl.fields)

	def _emit(self, ctx: VisitContext, fields: Iterable[FieldDef], *, variant: Optional[str] = None) -> int:
		count = 0
		for index, fdef in enumerate(fields):
			self.sink.write_field(
				FieldRecord(
					owner=ctx.path,
					shape=fdef.ty,
					variant=variant,
					field_name=fdef.name if fdef.name is not None else str(index),
					span=fdef.span,
				)
			)
			count += 1
		return count


__all__ = ["DeclarationWalker", "DataDecl"]
