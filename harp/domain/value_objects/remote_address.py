"""
Remote Address Value Object

Architectural Intent:
- Immutable identity of one deployment target: user, host, port
- parse_address() returns a tagged result instead of raising, so callers
  decide how a malformed address is reported
- Supports IPv6 bracket notation (e.g., deploy@[::1]:22)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from harp.domain.errors import ConfigurationError

DEFAULT_SSH_PORT = 22


class AddressParseFailure(Enum):
    MISSING_USER_SEPARATOR = "missing '@' between user and host"
    EMPTY_USER = "empty user name"
    EMPTY_HOST = "empty host"
    INVALID_PORT = "invalid port"
    UNTERMINATED_BRACKET = "unterminated IPv6 bracket"


@dataclass(frozen=True)
class RemoteAddress:
    """
    Value Object representing user@host:port.
    """
    user: str
    host: str
    port: int = DEFAULT_SSH_PORT

    def __post_init__(self) -> None:
        if not self.user:
            raise ValueError("Remote user cannot be empty")
        if not self.host:
            raise ValueError("Remote host cannot be empty")
        if not (1 <= self.port <= 65535):
            raise ValueError(f"Port must be 1-65535, got {self.port}")

    @property
    def port_suffix(self) -> str:
        return f":{self.port}"

    @property
    def hostname(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]"
        return self.host

    def __str__(self) -> str:
        return f"{self.user}@{self.hostname}{self.port_suffix}"


@dataclass(frozen=True)
class AddressParseResult:
    raw: str
    address: Optional[RemoteAddress] = None
    failure: Optional[AddressParseFailure] = None

    @property
    def ok(self) -> bool:
        return self.address is not None

    def unwrap(self, set_name: str = "") -> RemoteAddress:
        """Return the address or raise ConfigurationError naming the server set."""
        if self.address is not None:
            return self.address
        origin = set_name or "configuration"
        if self.failure is AddressParseFailure.EMPTY_USER:
            message = f"{origin} contains server with empty user name"
        elif self.failure is AddressParseFailure.EMPTY_HOST:
            message = f"{origin} contains server with empty host"
        else:
            reason = self.failure.value if self.failure else "unknown error"
            message = f"{origin} contains malformed server address ({reason})"
        raise ConfigurationError(message, f"Address: {self.raw!r}")


def _fail(raw: str, failure: AddressParseFailure) -> AddressParseResult:
    return AddressParseResult(raw=raw, failure=failure)


def parse_address(raw: str) -> AddressParseResult:
    """
    Parses 'user@host', 'user@host:port' or 'user@[::1]:port'.
    An empty port ('user@host:') falls back to the default SSH port.
    """
    text = raw.strip()
    if "@" not in text:
        return _fail(raw, AddressParseFailure.MISSING_USER_SEPARATOR)

    user, rest = text.split("@", 1)
    if not user:
        return _fail(raw, AddressParseFailure.EMPTY_USER)

    port_text = ""
    if rest.startswith("["):
        bracket_end = rest.find("]")
        if bracket_end == -1:
            return _fail(raw, AddressParseFailure.UNTERMINATED_BRACKET)
        host = rest[1:bracket_end]
        remainder = rest[bracket_end + 1:]
        if remainder.startswith(":"):
            port_text = remainder[1:]
        elif remainder:
            return _fail(raw, AddressParseFailure.INVALID_PORT)
    elif ":" in rest:
        host, port_text = rest.split(":", 1)
    else:
        host = rest

    if not host:
        return _fail(raw, AddressParseFailure.EMPTY_HOST)

    port = DEFAULT_SSH_PORT
    if port_text:
        if not (port_text.isascii() and port_text.isdigit()) or not (
            1 <= int(port_text) <= 65535
        ):
            return _fail(raw, AddressParseFailure.INVALID_PORT)
        port = int(port_text)

    return AddressParseResult(
        raw=raw, address=RemoteAddress(user=user, host=host, port=port)
    )


@dataclass(frozen=True)
class HostTarget:
    """A parsed address together with its per-server configuration."""
    address: RemoteAddress
    set_name: str = ""
    home: str = ""
    runtime_root: str = ""
    log_dir: str = ""
    envs: dict[str, str] = field(default_factory=dict, compare=False)

    def __str__(self) -> str:
        return str(self.address)
