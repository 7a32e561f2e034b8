"""Host info command: read and edit the machine's typed key/value record.

The first token is either a known action (``get``, ``set``, ``delete``,
``list``) or, failing that, a key to read. A key that collides with an
action name is read with ``kennel hostinfo get <key>``.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated

import typer

from kennel.core.errors import KennelError
from kennel.core.hostinfo import (
    HostInfoStore,
    HostValue,
    ValueType,
    coerce_value,
    value_type_of,
)
from kennel.utils.formatting import console, print_error, print_info, print_success


class HostInfoAction(str, Enum):
    """Actions understood by ``kennel hostinfo``."""

    GET = "get"
    SET = "set"
    DELETE = "delete"
    LIST = "list"


@dataclass(frozen=True, slots=True)
class KnownAction:
    """A recognized action with its arguments."""

    action: HostInfoAction
    key: str | None = None
    value: str | None = None


@dataclass(frozen=True, slots=True)
class ReadKey:
    """A bare key to read."""

    key: str


HostInfoCommand = KnownAction | ReadKey


def parse_hostinfo_command(tokens: list[str]) -> HostInfoCommand:
    """Parse command line tokens into a host info command.

    Raises:
        ValueError: If an action is missing arguments or has extras.
    """
    if not tokens:
        return KnownAction(HostInfoAction.LIST)

    head, rest = tokens[0], tokens[1:]
    try:
        action = HostInfoAction(head)
    except ValueError:
        if rest:
            msg = f"Unexpected arguments after key {head!r}: {' '.join(rest)}"
            raise ValueError(msg) from None
        return ReadKey(head)

    expected = {
        HostInfoAction.GET: 1,
        HostInfoAction.SET: 2,
        HostInfoAction.DELETE: 1,
        HostInfoAction.LIST: 0,
    }[action]
    if len(rest) != expected:
        msg = f"'{action.value}' takes {expected} argument(s), got {len(rest)}"
        raise ValueError(msg)

    return KnownAction(
        action,
        key=rest[0] if expected >= 1 else None,
        value=rest[1] if expected == 2 else None,
    )


def format_value(value: HostValue) -> str:
    """Render a stored value for display."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def hostinfo(
    tokens: Annotated[
        list[str] | None,
        typer.Argument(help="ACTION [KEY [VALUE]] or a KEY to read."),
    ] = None,
    value_type: Annotated[
        ValueType,
        typer.Option(
            "--type",
            "-t",
            help="Value type for 'set'.",
            case_sensitive=False,
        ),
    ] = ValueType.STRING,
) -> None:
    """Read, write or delete host info values.

    Examples:
        kennel hostinfo                          # List every value
        kennel hostinfo last_sync                # Read a key
        kennel hostinfo get last_sync            # Same, explicit
        kennel hostinfo set asset_tag A1234
        kennel hostinfo set loaner true --type bool
        kennel hostinfo delete asset_tag
    """
    try:
        command = parse_hostinfo_command(list(tokens or []))
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    store = HostInfoStore()
    try:
        _run(store, command, value_type)
    except KennelError as e:
        print_error(str(e))
        raise typer.Exit(code=e.exit_code) from e


def _run(store: HostInfoStore, command: HostInfoCommand, value_type: ValueType) -> None:
    if isinstance(command, ReadKey):
        typer.echo(format_value(store.get(command.key)))
        return

    key = command.key or ""
    if command.action == HostInfoAction.GET:
        typer.echo(format_value(store.get(key)))
    elif command.action == HostInfoAction.SET:
        try:
            value = coerce_value(command.value or "", value_type)
        except ValueError as e:
            print_error(f"Invalid {value_type.value} value: {e}")
            raise typer.Exit(code=1) from e
        store.set(key, value)
        print_success(f"Set {key} ({value_type.value})")
    elif command.action == HostInfoAction.DELETE:
        store.delete(key)
        print_success(f"Deleted {key}")
    else:
        values = store.items()
        if not values:
            print_info("No host info values recorded.")
            return
        for name in sorted(values):
            value = values[name]
            kind = value_type_of(value).value
            console.print(f"{name} [muted]({kind})[/muted] = {format_value(value)}")
