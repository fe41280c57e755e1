# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Operator traits and the candidate lists tried for each surface operator.

Candidate order encodes fallback policy and is significant: resolution takes
the first candidate with an implementation, not the best one.

  + - * / %          Add / Sub / Mul / Div / Rem
  ^ & | << >>        BitXor / BitAnd / BitOr / Shl / Shr
  == !=              PartialEq
  < <= >= >          Ord, then PartialOrd
  op=                <Op>Assign, then <Op>
  a[i]               Index
  ! - *  (unary)     Not / Neg / Deref
  && ||              never trait-backed (no entry)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Optional, Tuple

from metacollect.model.exprs import BinaryOp, UnaryOp

CORE_OPS = "core::ops"
CORE_CMP = "core::cmp"

# Re-export facades that name the same traits.
_ALIASES = {
	"std::ops": CORE_OPS,
	"std::cmp": CORE_CMP,
	"alloc::ops": CORE_OPS,
}


class OperandPolicy(Enum):
	"""How operand types are matched against an impl of the trait."""

	SELF = auto()  # one operand, matched against Self
	SELF_PAIR = auto()  # two operands, both must be Self (Ord)
	RHS_DEFAULT_SELF = auto()  # left is Self, right is the trait arg, default Self
	RHS_REQUIRED = auto()  # left is Self, right is the trait arg (no default)


@dataclass(frozen=True)
class TraitCandidate:
	"""One entry of a candidate list: trait path plus the method the operator calls."""

	trait_path: str
	method: str

	def __str__(self) -> str:
		return f"{self.trait_path}::{self.method}"


@dataclass(frozen=True)
class OperatorTrait:
	path: str
	policy: OperandPolicy


def canonical_trait_path(path: str) -> str:
	"""Fold `std::ops::Add`, `::core::ops::Add` etc. into `core::ops::Add`."""
	path = path.lstrip(":")
	head, sep, name = path.rpartition("::")
	if not sep:
		return path
	return f"{_ALIASES.get(head, head)}::{name}"


def _ops(name: str) -> str:
	return f"{CORE_OPS}::{name}"


def _cmp(name: str) -> str:
	return f"{CORE_CMP}::{name}"


_ARITH: Dict[BinaryOp, Tuple[str, str]] = {
	BinaryOp.ADD: ("Add", "add"),
	BinaryOp.SUB: ("Sub", "sub"),
	BinaryOp.MUL: ("Mul", "mul"),
	BinaryOp.DIV: ("Div", "div"),
	BinaryOp.REM: ("Rem", "rem"),
	BinaryOp.BIT_XOR: ("BitXor", "bitxor"),
	BinaryOp.BIT_AND: ("BitAnd", "bitand"),
	BinaryOp.BIT_OR: ("BitOr", "bitor"),
	BinaryOp.SHL: ("Shl", "shl"),
	BinaryOp.SHR: ("Shr", "shr"),
}

_COMPARE_METHOD: Dict[BinaryOp, str] = {
	BinaryOp.LT: "lt",
	BinaryOp.LE: "le",
	BinaryOp.GE: "ge",
	BinaryOp.GT: "gt",
}

OPERATOR_TRAITS: Dict[str, OperatorTrait] = {}


def _register(path: str, policy: OperandPolicy) -> None:
	OPERATOR_TRAITS[path] = OperatorTrait(path=path, policy=policy)


for _name, _method in _ARITH.values():
	_register(_ops(_name), OperandPolicy.RHS_DEFAULT_SELF)
	_register(_ops(f"{_name}Assign"), OperandPolicy.RHS_DEFAULT_SELF)
_register(_cmp("PartialEq"), OperandPolicy.RHS_DEFAULT_SELF)
_register(_cmp("PartialOrd"), OperandPolicy.RHS_DEFAULT_SELF)
_register(_cmp("Ord"), OperandPolicy.SELF_PAIR)
_register(_ops("Index"), OperandPolicy.RHS_REQUIRED)
_register(_ops("Not"), OperandPolicy.SELF)
_register(_ops("Neg"), OperandPolicy.SELF)
_register(_ops("Deref"), OperandPolicy.SELF)


BINARY_CANDIDATES: Dict[BinaryOp, Tuple[TraitCandidate, ...]] = {
	op: (TraitCandidate(_ops(name), method),) for op, (name, method) in _ARITH.items()
}
BINARY_CANDIDATES[BinaryOp.EQ] = (TraitCandidate(_cmp("PartialEq"), "eq"),)
BINARY_CANDIDATES[BinaryOp.NE] = (TraitCandidate(_cmp("PartialEq"), "ne"),)
for _op, _method in _COMPARE_METHOD.items():
	BINARY_CANDIDATES[_op] = (
		TraitCandidate(_cmp("Ord"), "cmp"),
		TraitCandidate(_cmp("PartialOrd"), _method),
	)

COMPOUND_CANDIDATES: Dict[BinaryOp, Tuple[TraitCandidate, ...]] = {
	op: (
		TraitCandidate(_ops(f"{name}Assign"), f"{method}_assign"),
		TraitCandidate(_ops(name), method),
	)
	for op, (name, method) in _ARITH.items()
}

UNARY_CANDIDATES: Dict[UnaryOp, Tuple[TraitCandidate, ...]] = {
	UnaryOp.NOT: (TraitCandidate(_ops("Not"), "not"),),
	UnaryOp.NEG: (TraitCandidate(_ops("Neg"), "neg"),),
	UnaryOp.DEREF: (TraitCandidate(_ops("Deref"), "deref"),),
}

INDEX_CANDIDATES: Tuple[TraitCandidate, ...] = (TraitCandidate(_ops("Index"), "index"),)


def operator_trait_path(name: str) -> Optional[str]:
	"""Canonical path of an operator trait named without a path (`Ord` in `T: Ord`)."""
	for path in OPERATOR_TRAITS:
		if path.rpartition("::")[2] == name:
			return path
	return None


def operand_policy(trait_path: str) -> OperandPolicy:
	"""
	Policy for a trait; traits outside the catalog are matched on Self, with a
	second operand (if any) following the `Rhs = Self` convention.
	"""
	known = OPERATOR_TRAITS.get(canonical_trait_path(trait_path))
	if known is not None:
		return known.policy
	return OperandPolicy.RHS_DEFAULT_SELF


__all__ = [
	"CORE_OPS",
	"CORE_CMP",
	"OperandPolicy",
	"TraitCandidate",
	"OperatorTrait",
	"OPERATOR_TRAITS",
	"BINARY_CANDIDATES",
	"COMPOUND_CANDIDATES",
	"UNARY_CANDIDATES",
	"INDEX_CANDIDATES",
	"canonical_trait_path",
	"operand_policy",
	"operator_trait_path",
]
