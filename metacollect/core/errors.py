# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from typing import Optional

from .diagnostics import Diagnostic
from .span import Span


class InternalConsistencyError(RuntimeError):
	"""
	A violated traversal invariant (unbalanced item-path push/pop).

	This is a bug in the pass, not a problem with the input model. It is never
	converted into a Diagnostic; the run aborts instead of emitting records
	under a corrupted path.
	"""

	def __init__(self, message: str, *, leftover: tuple[str, ...] = ()) -> None:
		super().__init__(message)
		self.message = message
		self.leftover = leftover

	def __str__(self) -> str:
		if self.leftover:
			return f"internal error: {self.message} (leftover: {'::'.join(self.leftover)})"
		return f"internal error: {self.message}"


class ModelFormatError(ValueError):
	"""
	User-facing error for a malformed program model document.

	Carries the model location so the driver can report a pinned diagnostic
	instead of a raw Python exception.
	"""

	def __init__(self, message: str, *, span: Optional[Span] = None) -> None:
		super().__init__(message)
		self.message = message
		self.span = span or Span()

	def to_diagnostic(self) -> Diagnostic:
		return Diagnostic(message=self.message, phase="model", severity="error", span=self.span)


class TypeExprError(ValueError):
	"""Syntax error in a type expression embedded in the model."""

	def __init__(
		self, message: str, *, text: str, column: Optional[int] = None, span: Optional[Span] = None
	) -> None:
		super().__init__(message)
		self.message = message
		self.text = text
		self.column = column
		self.span = span or Span()

	def to_diagnostic(self, span: Optional[Span] = None) -> Diagnostic:
		notes = [f"in type expression {self.text!r}"]
		if self.column is not None:
			notes.append(f"at column {self.column} of the type expression")
		return Diagnostic(message=self.message, phase="types", severity="error", span=span or self.span, notes=notes)


__all__ = ["InternalConsistencyError", "ModelFormatError", "TypeExprError"]
