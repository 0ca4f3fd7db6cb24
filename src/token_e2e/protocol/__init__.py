"""HTTP peers — compiler service and faucet."""

from token_e2e.protocol.compiler import check_api_health, compile_token, parse_api_error
from token_e2e.protocol.faucet import fund_from_faucet, request_gas, request_gas_http

__all__ = [
    "check_api_health",
    "compile_token",
    "fund_from_faucet",
    "parse_api_error",
    "request_gas",
    "request_gas_http",
]
