"""Exception hierarchy for token-e2e.

- E2EError (base)
  - CompilationError
  - ApiUnavailableError
  - FaucetRequestError / FaucetRateLimitError (primary faucet path)
  - FundingError
  - BalanceTimeoutError
  - PublishError (PublishTimeoutError, TransactionRejectedError,
    UnsupportedTransactionError)
  - LedgerRpcError
  - KeypairError

Every terminal error renders a message an operator can act on without
reading internals: the service's own text, the address, or the wait time.
"""

from __future__ import annotations


class E2EError(Exception):
    """Base exception for all token-e2e failures.

    Attributes:
        message: Human-readable error description.
        details: Extra context rendered after the message.
    """

    def __init__(self, message: str, *, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class CompilationError(E2EError):
    """The compiler service rejected or could not process a request.

    Never retried here; the caller decides whether to retry the spec.
    ``message`` is ``error`` or ``"{error}: {details}"`` from the service.
    """

    def __init__(
        self,
        message: str,
        details: str | None = None,
        *,
        status_code: int | None = None,
        timed_out: bool = False,
    ) -> None:
        full = f"{message}: {details}" if details else message
        super().__init__(full)
        self.error = message
        self.error_details = details
        self.status_code = status_code
        self.timed_out = timed_out


class ApiUnavailableError(E2EError):
    """The compiler service never reported healthy."""

    def __init__(self, api_url: str, waited_seconds: float) -> None:
        super().__init__(f"API not available at {api_url} after {waited_seconds:g}s")
        self.api_url = api_url
        self.waited_seconds = waited_seconds


class FaucetRequestError(E2EError):
    """A single faucet request failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FaucetRateLimitError(FaucetRequestError):
    """The faucet answered 429."""

    def __init__(self) -> None:
        super().__init__(
            "Too many requests from this client have been sent to the faucet. "
            "Please retry later",
            status_code=429,
        )


class FundingError(E2EError):
    """Faucet protocol and HTTP fallback both failed.

    The message is the primary path's last error; the fallback failure
    never replaces it.
    """

    def __init__(self, cause: BaseException, *, address: str | None = None) -> None:
        super().__init__(str(cause))
        self.cause = cause
        self.address = address


class BalanceTimeoutError(E2EError):
    """Funds never became visible within the polling budget."""

    def __init__(self, address: str, waited_seconds: float, attempts: int) -> None:
        super().__init__(
            f"No IOTA balance appeared after {waited_seconds:g}s. "
            f"Check that the faucet funded address {address} correctly."
        )
        self.address = address
        self.waited_seconds = waited_seconds
        self.attempts = attempts


class PublishError(E2EError):
    """The ledger rejected a publish or it failed after the timeout retry."""


class PublishTimeoutError(PublishError):
    """Submission or finality wait exceeded its deadline."""

    def __init__(self, message: str, *, digest: str | None = None) -> None:
        super().__init__(message)
        self.digest = digest


class TransactionRejectedError(PublishError):
    """Transaction executed but its effects report failure."""

    def __init__(self, message: str, *, digest: str | None = None) -> None:
        super().__init__(message)
        self.digest = digest


class UnsupportedTransactionError(PublishError):
    """The ledger client cannot serialize this command sequence."""


class LedgerRpcError(E2EError):
    """A JSON-RPC call to the ledger node returned an error object."""

    def __init__(self, method: str, message: str, *, code: int | None = None) -> None:
        details = {"method": method}
        if code is not None:
            details["code"] = str(code)
        super().__init__(message, details=details)
        self.method = method
        self.code = code


class KeypairError(E2EError):
    """A supplied private key could not be loaded."""
