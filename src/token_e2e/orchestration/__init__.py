"""Retry-aware orchestration — balance watcher, publisher and run driver."""

from token_e2e.orchestration.balance import wait_for_balance
from token_e2e.orchestration.publisher import (
    build_publish_transaction,
    execute_publish,
    get_explorer_url,
    publish_package,
)
from token_e2e.orchestration.runner import E2ERunner, default_token_specs

__all__ = [
    "E2ERunner",
    "build_publish_transaction",
    "default_token_specs",
    "execute_publish",
    "get_explorer_url",
    "publish_package",
    "wait_for_balance",
]
