"""pytopofem.config
Helpers for the nested parameter dictionaries that describe a problem.

Parameter blocks follow the familiar "Physics" / "Material Models" /
"Essential Boundary Conditions" / "Criteria" layout; they can be built in
Python or read from a JSON file with :func:`load_parameters`.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from pytopofem.errors import ConfigurationError

__all__ = [
    "load_parameters",
    "require",
    "sublist",
    "AssemblyParameters",
    "PenaltyParameters",
]


def load_parameters(path) -> Dict[str, Any]:
    with open(Path(path), "r") as f:
        params = json.load(f)
    if not isinstance(params, dict):
        raise ConfigurationError(f"{path}: top level of a parameter file must be an object")
    return params


def require(params: Dict[str, Any], key: str, context: str = "problem"):
    """Return ``params[key]`` or raise a :class:`ConfigurationError`."""
    if key not in params:
        raise ConfigurationError(
            f"REQUIRED PARAMETER '{key}' IS NOT DEFINED IN THE '{context}' PARAMETER BLOCK."
        )
    return params[key]


def sublist(params: Dict[str, Any], name: str, *, required: bool = False) -> Dict[str, Any]:
    if name not in params:
        if required:
            raise ConfigurationError(
                f"{name.upper()} SUBLIST IS NOT DEFINED IN THE INPUT PARAMETERS."
            )
        return {}
    block = params[name]
    if not isinstance(block, dict):
        raise ConfigurationError(f"'{name}' must be a parameter block, got {type(block).__name__}")
    return block


@dataclass
class AssemblyParameters:
    """Cell batching and worker count for the assembly loops."""

    workset_size: int = 4096            # cells per workset
    threads: int = 1                    # >1 → worksets mapped on a thread pool

    @classmethod
    def from_params(cls, params: Dict[str, Any]) -> "AssemblyParameters":
        block = sublist(params, "Assembly")
        out = cls(
            workset_size=int(block.get("Workset Size", cls.workset_size)),
            threads=int(block.get("Threads", cls.threads)),
        )
        if out.workset_size < 1 or out.threads < 1:
            raise ConfigurationError("Assembly: 'Workset Size' and 'Threads' must be positive.")
        return out


@dataclass
class PenaltyParameters:
    """Modified SIMP: ``minimum + (1 - minimum) * rho**exponent``."""

    exponent: float = 3.0
    minimum: float = 0.0

    @classmethod
    def from_params(cls, block: Dict[str, Any], *, exponent: float = 3.0,
                    minimum: float = 0.0) -> "PenaltyParameters":
        ptype = block.get("Type", "SIMP")
        if ptype not in ("SIMP", "MSIMP"):
            raise ConfigurationError(f"Penalty Function: unknown type '{ptype}'.")
        return cls(
            exponent=float(block.get("Exponent", exponent)),
            minimum=float(block.get("Minimum Value", minimum)),
        )
