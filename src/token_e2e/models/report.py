"""Per-run report: which tokens were published and which failed."""

from __future__ import annotations

from pydantic import BaseModel, Field

from token_e2e.models.funding import FundingOutcome
from token_e2e.models.token import TokenSpec


class TokenSuccess(BaseModel):
    """A token whose package reached finality on the ledger."""

    spec: TokenSpec
    digest: str = Field(description="Publish transaction digest")
    explorer_url: str = Field(description="Explorer link for the digest")
    module_count: int = Field(default=0, description="Modules in the compiled package")


class TokenFailure(BaseModel):
    """A token whose compile or publish failed."""

    spec: TokenSpec
    error: str = Field(description="Human-readable failure message")
    stage: str = Field(description="compile or publish")
    hint: str | None = Field(default=None, description="Operator remediation hint")


class RunReport(BaseModel):
    """Ordered outcomes of one run, in the order the specs were given."""

    address: str
    funding: FundingOutcome | None = None
    balance: int | None = None
    successes: list[TokenSuccess] = Field(default_factory=list)
    failures: list[TokenFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def digest_for(self, spec: TokenSpec) -> str | None:
        for success in self.successes:
            if success.spec == spec:
                return success.digest
        return None
