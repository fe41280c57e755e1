# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lightweight source span representation used by records and diagnostics.

Program models come from an external front-end, so a Span carries whatever
location information the model provides: best-effort file/line/column plus a
`pointer` naming the node inside the model document (for example
`/items/2/body/stmts/0`). `Span()` denotes an unknown location.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source span (best-effort file/line/column plus model pointer)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None
	pointer: Optional[str] = None

	@classmethod
	def from_loc(cls, loc: Any, *, pointer: Optional[str] = None) -> "Span":
		"""
		Construct a Span from a model location object.

		Accepts an existing Span (returned unchanged unless a pointer is being
		attached), a mapping with `file`/`line`/`column` keys as found in JSON
		models, or any object exposing those attributes.
		"""
		if isinstance(loc, cls):
			if pointer is None or loc.pointer is not None:
				return loc
			return cls(loc.file, loc.line, loc.column, loc.end_line, loc.end_column, pointer)
		if loc is None:
			return cls(pointer=pointer)
		if isinstance(loc, dict):
			get = loc.get
		else:
			def get(key: str, default: Any = None) -> Any:
				return getattr(loc, key, default)
		return cls(
			file=get("file", None) or get("filename", None) or None,
			line=_opt_int(get("line", None)),
			column=_opt_int(get("column", None)),
			end_line=_opt_int(get("end_line", None)),
			end_column=_opt_int(get("end_column", None)),
			pointer=pointer,
		)

	def is_known(self) -> bool:
		return self.line is not None

	def label(self) -> str:
		"""`line:column` with `?` placeholders, as used in human diagnostics."""
		line = "?" if self.line is None else str(self.line)
		column = "?" if self.column is None else str(self.column)
		return f"{line}:{column}"


def _opt_int(value: Any) -> Optional[int]:
	if isinstance(value, bool) or not isinstance(value, int):
		return None
	return value


__all__ = ["Span"]
