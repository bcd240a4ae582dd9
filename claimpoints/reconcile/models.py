"""Marker snapshot and marker diff models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

OpName = Literal["create", "delete", "relabel", "restyle", "set_visible"]
OP_NAMES: tuple[OpName, ...] = ("create", "delete", "relabel", "restyle", "set_visible")


@dataclass(frozen=True)
class Marker:
    """Read-only view of one stored marker."""

    ref: int
    x: int
    z: int
    label: str
    alias: str
    color: str
    visible: bool = True

    @property
    def position(self) -> tuple[int, int]:
        return (self.x, self.z)


class CreateOp(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    op: Literal["create"] = "create"
    x: int
    z: int
    label: str
    alias: str
    color: str


class DeleteOp(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    op: Literal["delete"] = "delete"
    ref: int


class RelabelOp(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    op: Literal["relabel"] = "relabel"
    ref: int
    label: str


class RestyleOp(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    op: Literal["restyle"] = "restyle"
    ref: int
    label: str
    alias: str
    color: str


class SetVisibleOp(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    op: Literal["set_visible"] = "set_visible"
    ref: int
    visible: bool


MarkerOp = Annotated[
    CreateOp | DeleteOp | RelabelOp | RestyleOp | SetVisibleOp,
    Field(discriminator="op"),
]


class MarkerDiff(BaseModel):
    """Ordered marker operations plus per-kind counts.

    Rules:
    - operations are applied in list order
    - counts[name] == number of operations with op == name
    """

    model_config = ConfigDict(extra="forbid")

    operations: list[MarkerOp] = Field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        counts = {name: 0 for name in OP_NAMES}
        for operation in self.operations:
            counts[operation.op] += 1
        return counts

    @property
    def is_empty(self) -> bool:
        return not self.operations

    def extend(self, other: MarkerDiff) -> None:
        self.operations.extend(other.operations)
