"""Data models — token specs, compiled packages, funding and run reports."""

from token_e2e.models.funding import FundingOutcome, FundingSource
from token_e2e.models.package import DEFAULT_API_ERROR, ApiError, CompiledPackage
from token_e2e.models.report import RunReport, TokenFailure, TokenSuccess
from token_e2e.models.token import CoinType, TokenSpec

__all__ = [
    "ApiError",
    "CoinType",
    "CompiledPackage",
    "DEFAULT_API_ERROR",
    "FundingOutcome",
    "FundingSource",
    "RunReport",
    "TokenFailure",
    "TokenSpec",
    "TokenSuccess",
]
