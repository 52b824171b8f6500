from __future__ import annotations

from typing import ClassVar, List, Tuple

import pandas as pd
from pydantic import BaseModel, Field, model_validator


class IterationLog(BaseModel):
    """
    Append-only record of evaluation counters and residuals.

    Entry `i` holds the energy / gradient evaluation counts and the residual(s)
    observed when iteration `i` was accepted. All columns always have the
    same length.
    """

    residual_columns: ClassVar[Tuple[str, ...]] = ()

    numE: List[int] = Field(default_factory=list)
    numdE: List[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_equal_lengths(self):
        lengths = {len(getattr(self, name)) for name in self.columns()}
        assert len(lengths) <= 1, f"columns must have equal lengths, got {lengths}"
        return self

    @classmethod
    def columns(cls) -> Tuple[str, ...]:
        return ("numE", "numdE") + cls.residual_columns

    def append(self, numE: int, numdE: int, *residuals: float) -> None:
        if len(residuals) != len(self.residual_columns):
            raise ValueError(
                f"{type(self).__name__} expects {len(self.residual_columns)} residual(s), "
                f"got {len(residuals)}"
            )
        self.numE.append(int(numE))
        self.numdE.append(int(numdE))
        for name, value in zip(self.residual_columns, residuals):
            getattr(self, name).append(float(value))

    def __len__(self) -> int:
        return len(self.numdE)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame({name: getattr(self, name) for name in self.columns()})


class DimerLog(IterationLog):
    residual_columns: ClassVar[Tuple[str, ...]] = ("res_trans", "res_rot")

    res_trans: List[float] = Field(default_factory=list)
    res_rot: List[float] = Field(default_factory=list)


class ODELog(IterationLog):
    residual_columns: ClassVar[Tuple[str, ...]] = ("res",)

    res: List[float] = Field(default_factory=list)
