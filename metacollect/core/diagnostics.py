"""
Common diagnostic structure for the loader and driver.

A diagnostic is a message plus a phase label and a span. The collection pass
itself never produces diagnostics: skipped expressions are not errors, and
internal-consistency violations are raised, not reported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .span import Span


@dataclass
class Diagnostic:
	"""Represents a tool diagnostic (error/warning/note)."""

	message: str
	# Phase label: "model" (loading/validating the program model), "types"
	# (type-expression syntax), or "output" (record sink I/O).
	phase: Optional[str] = None
	severity: str = "error"
	span: Span = field(default_factory=Span)
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	def to_json(self, file: Optional[str] = None) -> Dict[str, Any]:
		return {
			"phase": self.phase,
			"message": self.message,
			"severity": self.severity,
			"file": self.span.file or file,
			"line": self.span.line,
			"column": self.span.column,
			"pointer": self.span.pointer,
			"notes": list(self.notes),
		}

	def format_human(self, file: Optional[str] = None) -> str:
		where = self.span.file or file or "<model>"
		text = f"{where}:{self.span.label()}: {self.severity}: {self.message}"
		if self.span.pointer:
			text += f" (at {self.span.pointer})"
		return text


__all__ = ["Diagnostic"]
