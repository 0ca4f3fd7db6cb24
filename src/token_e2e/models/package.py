"""Compiler service responses: compiled packages and error bodies."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CompiledPackage(BaseModel):
    """Bytecode produced by the compiler for exactly one TokenSpec.

    Consumed once by the publisher; never reused for another spec.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    modules: tuple[str, ...] = Field(description="Base64-encoded bytecode modules, in order")
    dependencies: tuple[str, ...] = Field(description="Dependency package IDs (hex addresses)")
    digest: tuple[int, ...] = Field(
        default=(),
        description="Package digest bytes",
    )
    package_name: str = Field(alias="packageName", description="Move package name")

    @property
    def digest_hex(self) -> str:
        return bytes(self.digest).hex()


class ApiError(BaseModel):
    """Structured error body returned by the compiler service."""

    error: str = Field(default="Compilation failed", description="Service error text")
    details: str | None = Field(default=None, description="Optional detail text")

    @property
    def message(self) -> str:
        return f"{self.error}: {self.details}" if self.details else self.error


# Sentinel for error bodies that cannot be parsed.
DEFAULT_API_ERROR = ApiError()
