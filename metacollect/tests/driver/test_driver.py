# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

from metacollect.driver import CollectConfig, build_arg_parser, main


def _model() -> dict:
	add = {
		"kind": "binary",
		"op": "+",
		"left": {"kind": "path", "path": "x", "local": True, "type": "i32"},
		"right": {"kind": "lit", "lit": "int", "value": 1, "type": "i32"},
		"type": "i32",
	}
	return {
		"crate": "demo",
		"items": [
			{"kind": "struct", "name": "Point", "fields": [{"name": "x", "type": "f64"}, {"name": "y", "type": "f64"}]},
			{
				"kind": "fn",
				"name": "main",
				"body": {
					"stmts": [
						{
							"kind": "expr",
							"expr": {
								"kind": "call",
								"func": {"kind": "path", "path": "foo", "res": "demo::foo"},
								"args": [add],
							},
						}
					]
				},
			},
		],
	}


def _write_model(tmp_path: Path, data: dict) -> Path:
	path = tmp_path / "model.json"
	path.write_text(json.dumps(data), encoding="utf-8")
	return path


def test_writes_both_tsv_streams(tmp_path: Path) -> None:
	model = _write_model(tmp_path, _model())
	out = tmp_path / "target"
	assert main([str(model), "--out-dir", str(out)]) == 0
	assert (out / "nsa_types.txt").read_text(encoding="utf-8") == "demo::Point\tPath(f64)\ndemo::Point\tPath(f64)\n"
	assert (out / "nsa_funcs.txt").read_text(encoding="utf-8") == (
		"demo::main\tdemo::foo\ndemo::main\t<i32 as core::ops::Add>::add\n"
	)


def test_no_prelude_leaves_primitive_operators_unresolved(tmp_path: Path) -> None:
	model = _write_model(tmp_path, _model())
	out = tmp_path / "target"
	assert main([str(model), "--out-dir", str(out), "--no-prelude", "--funcs-file", "calls.tsv"]) == 0
	assert (out / "calls.tsv").read_text(encoding="utf-8") == "demo::main\tdemo::foo\n"


def test_jsonl_format_writes_one_object_per_record(tmp_path: Path) -> None:
	model = _write_model(tmp_path, _model())
	out = tmp_path / "target"
	assert main([str(model), "--out-dir", str(out), "--format", "jsonl"]) == 0
	lines = (out / "nsa_records.jsonl").read_text(encoding="utf-8").splitlines()
	records = [json.loads(line) for line in lines]
	assert [r["record"] for r in records] == ["field", "field", "call", "call"]
	assert records[0]["owner"] == "demo::Point"
	assert records[0]["field"] == "x"
	assert records[3]["target"] == "<i32 as core::ops::Add>::add"
	assert records[3]["trait"] == "core::ops::Add"
	assert records[3]["kind"] == "binary"
	assert not (out / "nsa_types.txt").exists()


def test_json_diagnostic_for_bad_type_expression(tmp_path: Path, capsys) -> None:
	data = _model()
	data["items"][0]["fields"][0]["type"] = "Vec<"
	model = _write_model(tmp_path, data)
	assert main([str(model), "--out-dir", str(tmp_path / "target"), "--json"]) == 1
	payload = json.loads(capsys.readouterr().out)
	assert payload["exit_code"] == 1
	diag = payload["diagnostics"][0]
	assert diag["phase"] == "types"
	assert diag["severity"] == "error"
	assert diag["pointer"] == "/items/0/fields/0/type"
	assert diag["file"] == str(model)
	assert any("Vec<" in note for note in diag["notes"])
	assert not (tmp_path / "target").exists()


def test_human_diagnostic_for_malformed_model(tmp_path: Path, capsys) -> None:
	model = tmp_path / "model.json"
	model.write_text('{"crate": "demo", "items": [', encoding="utf-8")
	assert main([str(model)]) == 1
	captured = capsys.readouterr()
	assert captured.out == ""
	assert captured.err.startswith(f"{model}:1:")
	assert "error: invalid JSON" in captured.err


def test_missing_model_is_reported(tmp_path: Path, capsys) -> None:
	assert main([str(tmp_path / "absent.json"), "--json"]) == 1
	diag = json.loads(capsys.readouterr().out)["diagnostics"][0]
	assert diag["phase"] == "model"
	assert diag["message"].startswith("cannot read program model")


def test_unwritable_output_directory_is_an_output_diagnostic(tmp_path: Path, capsys) -> None:
	model = _write_model(tmp_path, _model())
	blocker = tmp_path / "blocker"
	blocker.write_text("", encoding="utf-8")
	assert main([str(model), "--out-dir", str(blocker / "out"), "--json"]) == 1
	diag = json.loads(capsys.readouterr().out)["diagnostics"][0]
	assert diag["phase"] == "output"
	assert diag["message"].startswith("cannot write records")


def test_stats_and_json_success(tmp_path: Path, capsys) -> None:
	model = _write_model(tmp_path, _model())
	assert main([str(model), "--out-dir", str(tmp_path / "target"), "--stats", "--json"]) == 0
	captured = capsys.readouterr()
	assert json.loads(captured.out) == {"exit_code": 0, "diagnostics": []}
	assert captured.err.strip() == (
		"metacollect: items=2 functions=1 fields=2 classified=2 resolved=2 skipped=0"
	)


def test_config_defaults_follow_the_arg_parser() -> None:
	config = CollectConfig.from_args(build_arg_parser().parse_args(["model.json"]))
	assert config == CollectConfig(model=Path("model.json"))
	assert config.types_path == Path("target") / "nsa_types.txt"
	assert config.funcs_path == Path("target") / "nsa_funcs.txt"
	assert config.records_path == Path("target") / "nsa_records.jsonl"
