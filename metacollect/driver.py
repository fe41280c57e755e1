# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Command-line driver: load a program model, run the pass, write the records.

  metacollect MODEL.json [--out-dir DIR] [--format tsv|jsonl] [--json] [--stats]

Model and output problems are reported as diagnostics (human-readable on
stderr, or `{"exit_code": ..., "diagnostics": [...]}` on stdout with --json)
and exit with status 1. Internal consistency violations are not diagnostics:
they propagate and abort the run.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, TextIO, Union

from metacollect.analysis.collector import Metacollect
from metacollect.core.diagnostics import Diagnostic
from metacollect.core.errors import ModelFormatError, TypeExprError
from metacollect.core.span import Span
from metacollect.parser.model_loader import load_program
from metacollect.records import JsonLinesSink, TsvSink
from metacollect.traits.impl_index import ImplIndex, ImplIndexResolver

FORMATS = ("tsv", "jsonl")


@dataclass(frozen=True)
class CollectConfig:
	"""Resolved command-line configuration for one run."""

	model: Path
	out_dir: Path = Path("target")
	format: str = "tsv"
	types_file: str = "nsa_types.txt"
	funcs_file: str = "nsa_funcs.txt"
	records_file: str = "nsa_records.jsonl"
	prelude: bool = True
	json: bool = False
	stats: bool = False

	@property
	def types_path(self) -> Path:
		return self.out_dir / self.types_file

	@property
	def funcs_path(self) -> Path:
		return self.out_dir / self.funcs_file

	@property
	def records_path(self) -> Path:
		return self.out_dir / self.records_file

	@classmethod
	def from_args(cls, args: argparse.Namespace) -> "CollectConfig":
		return cls(
			model=args.model,
			out_dir=args.out_dir,
			format=args.format,
			types_file=args.types_file,
			funcs_file=args.funcs_file,
			records_file=args.records_file,
			prelude=args.prelude,
			json=args.json,
			stats=args.stats,
		)


def build_arg_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="metacollect",
		description="Collect field types and resolved call targets from a type-checked program model",
	)
	parser.add_argument("model", type=Path, help="Path to the program model (JSON)")
	parser.add_argument(
		"--out-dir",
		type=Path,
		default=Path("target"),
		help="Directory the record files are written to (default: target)",
	)
	parser.add_argument(
		"--format",
		choices=FORMATS,
		default="tsv",
		help="tsv: one file per record stream (default); jsonl: one JSON object per record",
	)
	parser.add_argument("--types-file", default="nsa_types.txt", help="Field-type stream file name (tsv)")
	parser.add_argument("--funcs-file", default="nsa_funcs.txt", help="Call stream file name (tsv)")
	parser.add_argument("--records-file", default="nsa_records.jsonl", help="Combined record file name (jsonl)")
	parser.add_argument(
		"--prelude",
		dest="prelude",
		action="store_true",
		default=True,
		help="Register the core operator impls for primitive types (default)",
	)
	parser.add_argument(
		"--no-prelude",
		dest="prelude",
		action="store_false",
		help="Resolve operators against the program's own impls only",
	)
	parser.add_argument(
		"--json",
		action="store_true",
		help="Emit diagnostics as JSON (phase/message/severity/file/line/column)",
	)
	parser.add_argument("--stats", action="store_true", help="Print a one-line pass summary to stderr")
	return parser


def run(config: CollectConfig, *, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None) -> int:
	stdout = stdout if stdout is not None else sys.stdout
	stderr = stderr if stderr is not None else sys.stderr
	model_file = str(config.model)
	try:
		program = load_program(config.model)
	except (ModelFormatError, TypeExprError) as err:
		return _report([err.to_diagnostic()], config, model_file, stdout, stderr)

	resolver = ImplIndexResolver(ImplIndex.from_program(program, prelude=config.prelude))
	sink: Union[TsvSink, JsonLinesSink]
	try:
		if config.format == "jsonl":
			sink = JsonLinesSink(config.records_path)
		else:
			sink = TsvSink(config.types_path, config.funcs_path)
	except OSError as err:
		return _report([_output_diagnostic(err)], config, model_file, stdout, stderr)

	try:
		with sink:
			stats = Metacollect(resolver, sink).run(program)
	except OSError as err:
		return _report([_output_diagnostic(err)], config, model_file, stdout, stderr)

	if config.stats:
		print(f"metacollect: {stats.summary()}", file=stderr)
	if config.json:
		print(json.dumps({"exit_code": 0, "diagnostics": []}), file=stdout)
	return 0


def main(argv: Optional[List[str]] = None) -> int:
	"""
	CLI entrypoint. Returns the process exit status (0 on success, 1 when the
	model could not be loaded or the records could not be written).
	"""
	args = build_arg_parser().parse_args(argv)
	return run(CollectConfig.from_args(args))


def _output_diagnostic(err: OSError) -> Diagnostic:
	where = err.filename
	return Diagnostic(
		message=f"cannot write records: {err.strerror or err}",
		phase="output",
		severity="error",
		span=Span(file=str(where) if where is not None else None),
	)


def _report(
	diags: List[Diagnostic], config: CollectConfig, model_file: str, stdout: TextIO, stderr: TextIO
) -> int:
	if config.json:
		payload = {"exit_code": 1, "diagnostics": [d.to_json(model_file) for d in diags]}
		print(json.dumps(payload), file=stdout)
	else:
		for diag in diags:
			print(diag.format_human(model_file), file=stderr)
			for note in diag.notes:
				print(f"  note: {note}", file=stderr)
	return 1


__all__ = ["CollectConfig", "FORMATS", "build_arg_parser", "run", "main"]
