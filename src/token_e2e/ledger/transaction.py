"""Programmable transaction builder for package publishes.

A Transaction is a short ordered list of commands. Commands refer to the
results of earlier commands by index, which is how the upgrade capability
produced by ``publish`` is handed to ``transfer_objects``.

Instances are single-use: the publisher builds a new one for every attempt.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class CommandKind(str, Enum):
    """Commands the builder supports."""

    PUBLISH = "publish"
    TRANSFER_OBJECTS = "transfer_objects"


class Result(BaseModel, frozen=True):
    """Reference to the output of command ``index``."""

    index: int


class PublishCommand(BaseModel):
    kind: CommandKind = CommandKind.PUBLISH
    modules: list[str] = Field(description="Base64-encoded bytecode modules")
    dependencies: list[str] = Field(description="Dependency package IDs")


class TransferObjectsCommand(BaseModel):
    kind: CommandKind = CommandKind.TRANSFER_OBJECTS
    objects: list[Result]
    recipient: str


Command = PublishCommand | TransferObjectsCommand


class Transaction:
    """Mutable builder; commands are appended in call order."""

    def __init__(self) -> None:
        self._commands: list[Command] = []
        self._sender: str | None = None

    @property
    def commands(self) -> list[Command]:
        return list(self._commands)

    @property
    def sender(self) -> str | None:
        return self._sender

    def set_sender(self, address: str) -> None:
        self._sender = address

    def publish(self, *, modules: list[str], dependencies: list[str]) -> Result:
        """Publish a package; the result is the new package's upgrade capability."""
        self._commands.append(
            PublishCommand(modules=list(modules), dependencies=list(dependencies)),
        )
        return Result(index=len(self._commands) - 1)

    def transfer_objects(self, objects: list[Result], recipient: str) -> None:
        """Transfer command outputs to ``recipient``."""
        for obj in objects:
            if obj.index >= len(self._commands):
                msg = f"Result({obj.index}) refers to a command that does not exist yet"
                raise ValueError(msg)
        self._commands.append(TransferObjectsCommand(objects=list(objects), recipient=recipient))

    def publish_command(self) -> PublishCommand | None:
        for command in self._commands:
            if isinstance(command, PublishCommand):
                return command
        return None

    def is_self_custodied_publish(self, address: str) -> bool:
        """True for exactly [publish, transfer(upgrade cap -> address)]."""
        if len(self._commands) != 2:
            return False
        publish, transfer = self._commands
        return (
            isinstance(publish, PublishCommand)
            and isinstance(transfer, TransferObjectsCommand)
            and transfer.objects == [Result(index=0)]
            and transfer.recipient == address
        )

    def __repr__(self) -> str:
        kinds = ", ".join(c.kind.value for c in self._commands)
        return f"Transaction([{kinds}])"
