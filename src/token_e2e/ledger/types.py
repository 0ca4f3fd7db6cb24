"""Request and response shapes of the ledger client capability."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

IOTA_COIN_TYPE = "0x2::iota::IOTA"


class Balance(BaseModel):
    """Account balance for one coin type.

    ``total_balance`` arrives as a decimal string and is held as an
    unbounded int; it routinely exceeds 2**53.
    """

    model_config = ConfigDict(populate_by_name=True)

    coin_type: str = Field(default=IOTA_COIN_TYPE, alias="coinType")
    total_balance: int = Field(alias="totalBalance", ge=0)
    coin_object_count: int = Field(default=0, alias="coinObjectCount")


class ExecuteOptions(BaseModel):
    """What the node should report back after execution."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    show_effects: bool = Field(default=True, alias="showEffects")
    show_object_changes: bool = Field(default=True, alias="showObjectChanges")
    show_events: bool = Field(default=False, alias="showEvents")

    def to_rpc(self) -> dict[str, bool]:
        return self.model_dump(by_alias=True)


class ExecutionResult(BaseModel):
    """Result of a signed submission."""

    digest: str = Field(description="Transaction digest")
    effects: dict[str, Any] | None = None
    object_changes: list[dict[str, Any]] | None = Field(default=None, alias="objectChanges")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @property
    def status(self) -> str | None:
        if not self.effects:
            return None
        return self.effects.get("status", {}).get("status")

    @property
    def failure_reason(self) -> str | None:
        if self.status != "failure":
            return None
        return self.effects.get("status", {}).get("error") if self.effects else None
