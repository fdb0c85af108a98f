"""Typed hyperparameter spaces and random design sampling."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd


def pow2(x: float) -> float:
    """Log-scale transform: sampled exponent -> 2**x."""
    return float(2.0 ** x)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


@dataclass(frozen=True)
class _Param:
    """
    Common behaviour for all parameter kinds.

    `default` is on the sampling scale (before `trafo`).
    `requires` maps an earlier parameter name to the value (or collection of
    values) it must take for this parameter to be active.
    """

    name: str
    default: Any = None
    trafo: Optional[Callable[[Any], Any]] = None
    requires: Optional[Mapping[str, Any]] = None

    kind: ClassVar[str] = "param"

    def is_active(self, row: Mapping[str, Any]) -> bool:
        if not self.requires:
            return True
        for other, wanted in self.requires.items():
            current = row.get(other)
            if _is_missing(current):
                return False
            allowed = wanted if isinstance(wanted, (list, tuple, set, frozenset)) else (wanted,)
            if current not in allowed:
                return False
        return True

    def draw(self, rng: np.random.Generator) -> Any:
        raise NotImplementedError

    def cast(self, value: Any) -> Any:
        return value

    def convert(self, value: Any) -> Any:
        """Cast a sampled value and apply the transform."""
        value = self.cast(value)
        return self.trafo(value) if self.trafo is not None else value

    def validate(self) -> None:
        pass


@dataclass(frozen=True)
class NumericParam(_Param):
    lower: float = 0.0
    upper: float = 1.0

    kind: ClassVar[str] = "numeric"

    def draw(self, rng: np.random.Generator) -> float:
        return float(rng.uniform(self.lower, self.upper))

    def cast(self, value: Any) -> float:
        return float(value)

    def validate(self) -> None:
        if self.lower > self.upper:
            raise ValueError(f"{self.name}: lower={self.lower} > upper={self.upper}")
        if self.default is not None and not (self.lower <= self.default <= self.upper):
            raise ValueError(f"{self.name}: default {self.default} outside [{self.lower}, {self.upper}]")


@dataclass(frozen=True)
class IntegerParam(NumericParam):
    lower: int = 0
    upper: int = 1

    kind: ClassVar[str] = "integer"

    def draw(self, rng: np.random.Generator) -> int:
        return int(rng.integers(self.lower, self.upper, endpoint=True))

    def cast(self, value: Any) -> int:
        return int(round(float(value)))


@dataclass(frozen=True)
class DiscreteParam(_Param):
    values: Sequence[Any] = field(default_factory=tuple)

    kind: ClassVar[str] = "discrete"

    def draw(self, rng: np.random.Generator) -> Any:
        return self.values[int(rng.integers(len(self.values)))]

    def validate(self) -> None:
        if not self.values:
            raise ValueError(f"{self.name}: discrete parameter needs at least one value")
        if self.default is not None and self.default not in self.values:
            raise ValueError(f"{self.name}: default {self.default!r} not in {list(self.values)}")


@dataclass(frozen=True)
class LogicalParam(_Param):
    kind: ClassVar[str] = "logical"

    def draw(self, rng: np.random.Generator) -> bool:
        return bool(rng.integers(2))

    def cast(self, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"true", "1", "yes"}
        return bool(value)


class ParamSpace:
    """Ordered collection of parameters; conditions may only point backwards."""

    def __init__(self, params: Sequence[_Param]):
        self.params: List[_Param] = list(params)
        seen: set[str] = set()
        for p in self.params:
            if p.name in seen:
                raise ValueError(f"Duplicate parameter name: {p.name}")
            for other in (p.requires or {}):
                if other not in seen:
                    raise ValueError(f"{p.name}: requires unknown or later parameter '{other}'")
            p.validate()
            seen.add(p.name)

    @property
    def names(self) -> List[str]:
        return [p.name for p in self.params]

    def __len__(self) -> int:
        return len(self.params)

    def __iter__(self):
        return iter(self.params)

    def sample(self, n: int, seed: int | None = None) -> pd.DataFrame:
        """
        Draw `n` configurations uniformly within bounds.

        Inactive conditional parameters are left missing in their row.
        """
        if n < 0:
            raise ValueError("n must be >= 0")
        rng = np.random.default_rng(seed)
        rows: List[Dict[str, Any]] = []
        for _ in range(n):
            row: Dict[str, Any] = {}
            for p in self.params:
                row[p.name] = p.draw(rng) if p.is_active(row) else None
            rows.append(row)
        design = pd.DataFrame(rows, columns=self.names)
        design.index.name = "trial"
        return design

    def row_to_params(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Active, typed and transformed values of one design row."""
        raw: Dict[str, Any] = {}
        out: Dict[str, Any] = {}
        for p in self.params:
            value = row.get(p.name)
            if _is_missing(value) or not p.is_active(raw):
                continue
            raw[p.name] = p.cast(value)
            out[p.name] = p.convert(value)
        return out

    def defaults(self) -> Dict[str, Any]:
        row = {p.name: p.default for p in self.params if p.default is not None}
        return self.row_to_params(row)
