# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Output records and the sinks they are written to.

The pass offers each record to a `RecordSink` as soon as it is created and
keeps nothing afterwards. Sinks own all persistence concerns (layout, flush
timing, durability); the pass only guarantees record content and order.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Protocol

from metacollect.core.paths import QualifiedPath
from metacollect.core.span import Span
from metacollect.model.types import TypeShape


class CallKind(Enum):
	"""Abstract operation a call record stands for."""

	DIRECT_CALL = "call"
	METHOD_CALL = "method"
	UNARY = "unary"
	BINARY = "binary"
	COMPARISON = "compare"
	COMPOUND_ASSIGN = "assign_op"
	INDEX = "index"


@dataclass(frozen=True)
class ResolvedTarget:
	"""
	Concrete function/method a call-shaped expression invokes.

	`trait_path` is set when the target was selected through a trait impl
	(operators, trait methods); it is None for direct calls and inherent
	methods.
	"""

	method_path: str
	trait_path: Optional[str] = None

	def __str__(self) -> str:
		return self.method_path


@dataclass(frozen=True)
class FieldRecord:
	owner: QualifiedPath
	shape: TypeShape
	variant: Optional[str] = None
	field_name: Optional[str] = None
	span: Span = field(default_factory=Span)

	@property
	def descriptor(self) -> str:
		return self.shape.describe()

	def to_json(self) -> Dict[str, Any]:
		return {
			"record": "field",
			"owner": str(self.owner),
			"variant": self.variant,
			"field": self.field_name,
			"type": str(self.shape),
			"shape": self.descriptor,
		}


@dataclass(frozen=True)
class CallRecord:
	caller: QualifiedPath
	target: ResolvedTarget
	kind: CallKind
	span: Span = field(default_factory=Span)

	def to_json(self) -> Dict[str, Any]:
		return {
			"record": "call",
			"caller": str(self.caller),
			"kind": self.kind.value,
			"target": self.target.method_path,
			"trait": self.target.trait_path,
		}


class RecordSink(Protocol):
	"""Destination for both record streams, in emission order."""

	def write_field(self, record: FieldRecord) -> None:
		...

	def write_call(self, record: CallRecord) -> None:
		...

	def flush(self) -> None:
		...


class MemorySink:
	"""Keeps records in lists; used by tests and by callers that post-process."""

	def __init__(self) -> None:
		self.fields: List[FieldRecord] = []
		self.calls: List[CallRecord] = []

	def write_field(self, record: FieldRecord) -> None:
		self.fields.append(record)

	def write_call(self, record: CallRecord) -> None:
		self.calls.append(record)

	def flush(self) -> None:
		pass

	def field_lines(self) -> List[str]:
		return [format_field_line(r) for r in self.fields]

	def call_lines(self) -> List[str]:
		return [format_call_line(r) for r in self.calls]


def format_field_line(record: FieldRecord) -> str:
	return f"{record.owner}\t{record.descriptor}"


def format_call_line(record: CallRecord) -> str:
	return f"{record.caller}\t{record.target.method_path}"


class TsvSink:
	"""
	Two tab-separated text files, one per stream:

	  types file:  <owner path>\\t<shape descriptor>
	  funcs file:  <caller path>\\t<target method path>
	"""

	def __init__(self, types_path: Path, funcs_path: Path) -> None:
		types_path.parent.mkdir(parents=True, exist_ok=True)
		funcs_path.parent.mkdir(parents=True, exist_ok=True)
		self.types_path = types_path
		self.funcs_path = funcs_path
		self._types: IO[str] = types_path.open("w", encoding="utf-8")
		try:
			self._funcs: IO[str] = funcs_path.open("w", encoding="utf-8")
		except OSError:
			self._types.close()
			raise

	def write_field(self, record: FieldRecord) -> None:
		self._types.write(format_field_line(record) + "\n")

	def write_call(self, record: CallRecord) -> None:
		self._funcs.write(format_call_line(record) + "\n")

	def flush(self) -> None:
		self._types.flush()
		self._funcs.flush()

	def close(self) -> None:
		self._types.close()
		self._funcs.close()

	def __enter__(self) -> "TsvSink":
		return self

	def __exit__(self, *exc: object) -> None:
		self.close()


class JsonLinesSink:
	"""Both streams interleaved in one file, one JSON object per line."""

	def __init__(self, path: Path) -> None:
		path.parent.mkdir(parents=True, exist_ok=True)
		self.path = path
		self._out: IO[str] = path.open("w", encoding="utf-8")

	def write_field(self, record: FieldRecord) -> None:
		self._out.write(json.dumps(record.to_json(), sort_keys=True) + "\n")

	def write_call(self, record: CallRecord) -> None:
		self._out.write(json.dumps(record.to_json(), sort_keys=True) + "\n")

	def flush(self) -> None:
		self._out.flush()

	def close(self) -> None:
		self._out.close()

	def __enter__(self) -> "JsonLinesSink":
		return self

	def __exit__(self, *exc: object) -> None:
		self.close()


__all__ = [
	"CallKind",
	"ResolvedTarget",
	"FieldRecord",
	"CallRecord",
	"RecordSink",
	"MemorySink",
	"TsvSink",
	"JsonLinesSink",
	"format_field_line",
	"format_call_line",
]
