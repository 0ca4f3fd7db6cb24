"""Token specifications sent to the compiler service."""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

_DECIMAL_RE = re.compile(r"[0-9]+")


class CoinType(str, Enum):
    """Kinds of coin package the compiler can build."""

    SIMPLE = "simple"
    COIN_MANAGER = "coinManager"
    REGULATED = "regulated"


class TokenSpec(BaseModel):
    """One token to create on the testnet.

    Built once per token and never mutated. Serialized by alias it is
    exactly the compile endpoint's request body.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    coin_type: CoinType = Field(alias="coinType", description="Package template")
    name: str = Field(description="Coin name")
    symbol: str = Field(description="Ticker symbol")
    decimals: int = Field(default=6, ge=0, le=18, description="Decimal places")
    description: str = Field(default="", description="Coin description")
    icon_url: str = Field(default="", alias="iconUrl", description="Icon URL, may be empty")
    total_supply: str = Field(
        alias="totalSupply",
        description="Initial supply as a decimal integer string",
    )
    max_supply: str | None = Field(
        default=None,
        alias="maxSupply",
        description="Supply cap as a decimal integer string, if any",
    )

    @field_validator("total_supply")
    @classmethod
    def _check_total_supply(cls, value: str) -> str:
        if not _DECIMAL_RE.fullmatch(value):
            raise ValueError(f"totalSupply must be a decimal integer string, got {value!r}")
        return value

    @field_validator("max_supply")
    @classmethod
    def _check_max_supply(cls, value: str | None) -> str | None:
        if value in (None, ""):
            return None
        if not _DECIMAL_RE.fullmatch(value):
            raise ValueError(f"maxSupply must be a decimal integer string, got {value!r}")
        return value

    @field_serializer("max_supply")
    def _serialize_max_supply(self, value: str | None) -> str:
        # The compiler expects an empty string for "no cap".
        return value or ""

    def to_request(self) -> dict[str, object]:
        """JSON body for ``POST /api/v1/compile``."""
        return self.model_dump(mode="json", by_alias=True)
