"""Outcome of funding the run's address from the faucet."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FundingSource(str, Enum):
    """Which faucet path delivered the funds."""

    FAUCET = "faucet"
    HTTP_FALLBACK = "http_fallback"


class FundingOutcome(BaseModel):
    """Successful funding. Failure is raised as ``FundingError`` instead."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(description="Funded address")
    source: FundingSource = Field(description="Path that succeeded")
    attempts: int = Field(description="Faucet protocol attempts made")
    primary_error: str | None = Field(
        default=None,
        description="Last faucet protocol error when the fallback rescued the run",
    )

    @property
    def used_fallback(self) -> bool:
        return self.source is FundingSource.HTTP_FALLBACK
