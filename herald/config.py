"""Request schema and validation for the Concourse resource protocol.

Concourse hands the resource a single JSON document on stdin. Every struct
here forbids unknown fields so that a typo in a pipeline (``acces_token``)
fails loudly instead of silently falling back to a default.

Secrets must never reach logs or error messages. Each struct has an
explicit field-sensitivity table in :data:`SENSITIVE_FIELDS`, and
``str()``/``repr()`` go through :func:`format_fields`, which refuses to
render a field that has not been classified.

Usage
-----
>>> request = parse_put_request(body, ["/tmp/build/put"])
>>> print(request.source)  # access_token renders as ***REDACTED***

"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

import msgspec

from herald.errors import ConfigError
from herald.state import BuildState

REDACTED = "***REDACTED***"

_CHAT_MESSAGE_FILE_SEPARATOR = "/"


def _display_value(value: object) -> str:
    # The only nullable field is an optional boolean override.
    if value is None:
        return "false"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list | tuple):
        return "[" + " ".join(str(item) for item in value) + "]"
    return str(value)


def format_fields(
    struct: msgspec.Struct, sensitivity: cabc.Mapping[str, bool]
) -> list[tuple[str, str]]:
    """Return ``(field, display value)`` pairs with sensitive values redacted.

    Empty sensitive values are shown empty so operators can tell an unset
    secret from a set one.

    Raises
    ------
    KeyError
        If a field of ``struct`` is missing from ``sensitivity``.

    """
    pairs: list[tuple[str, str]] = []
    for name in struct.__struct_fields__:
        if name not in sensitivity:
            msg = f"{type(struct).__name__}.{name} has no sensitivity classification"
            raise KeyError(msg)
        value = getattr(struct, name)
        if sensitivity[name] and value:
            pairs.append((name, REDACTED))
        else:
            pairs.append((name, _display_value(value)))
    return pairs


class _RedactedStruct(msgspec.Struct, kw_only=True, forbid_unknown_fields=True):
    """Base for request structs whose printed form hides secrets.

    Subclasses register their field table in :data:`SENSITIVE_FIELDS`.
    """

    def __str__(self) -> str:
        """Return one aligned ``name: value`` line per field."""
        pairs = format_fields(self, SENSITIVE_FIELDS[type(self)])
        width = max(len(name) for name, _ in pairs) + 2
        return "\n".join(f"{name + ':':<{width}}{value}" for name, value in pairs)

    def __repr__(self) -> str:
        """Return a constructor-style representation with secrets redacted."""
        pairs = format_fields(self, SENSITIVE_FIELDS[type(self)])
        body = ", ".join(f"{name}={value!r}" for name, value in pairs)
        return f"{type(self).__name__}({body})"


class Source(_RedactedStruct):
    """Resource configuration from the pipeline's ``resources:`` block.

    Attributes
    ----------
    owner, repo : str
        GitHub repository the notifications refer to. Mandatory.
    access_token : str
        GitHub token with ``repo:status`` scope. Mandatory, secret.
    gchat_webhook : str
        Google Chat incoming webhook URL. Secret; chat is disabled when empty.
    log_level : str
        Diagnostic verbosity (``debug``, ``info``, ...).
    context_prefix : str
        Prefix joined with ``/`` in front of the commit status context.
    chat_append_summary : bool
        Append the build summary to custom chat messages.
    chat_notify_on_states : list[BuildState]
        States that trigger a chat message. Empty means every state. Values
        are parsed into :class:`BuildState` on construction.

    """

    owner: str = ""
    repo: str = ""
    access_token: str = ""
    gchat_webhook: str = ""
    log_level: str = ""
    context_prefix: str = ""
    chat_append_summary: bool = False
    chat_notify_on_states: list[str] = msgspec.field(default_factory=list)

    def __post_init__(self) -> None:
        """Parse ``chat_notify_on_states`` into build states."""
        self.chat_notify_on_states = [
            BuildState.parse(state) for state in self.chat_notify_on_states
        ]

    def validate(self) -> None:
        """Check that every mandatory key is set.

        Raises
        ------
        ConfigError
            Naming all missing keys, in declaration order.

        """
        missing = [
            key for key in ("owner", "repo", "access_token") if not getattr(self, key)
        ]
        if missing:
            raise ConfigError.missing_keys(missing)


class PutParams(_RedactedStruct):
    """Per-step parameters from the pipeline's ``put:`` step.

    ``state`` is parsed into a :class:`BuildState` on construction, so an
    unknown state fails while decoding the request.
    """

    state: str
    context: str = ""
    chat_message: str = ""
    chat_message_file: str = ""
    chat_append_summary: bool | None = None
    gchat_webhook: str = ""

    def __post_init__(self) -> None:
        """Parse ``state`` into a build state."""
        self.state = BuildState.parse(self.state)

    @property
    def build_state(self) -> BuildState:
        """Return ``state`` typed as a :class:`BuildState`."""
        return typ.cast("BuildState", self.state)

    def validate(self) -> None:
        """Check the shape of ``chat_message_file``.

        Raises
        ------
        ConfigError
            If ``chat_message_file`` is set but not ``<dir>/<file>``.

        """
        if self.chat_message_file:
            split_chat_message_file(self.chat_message_file)


# Field sensitivity per struct; True means the value is a secret.
SENSITIVE_FIELDS: dict[type[_RedactedStruct], dict[str, bool]] = {
    Source: {
        "owner": False,
        "repo": False,
        "access_token": True,
        "gchat_webhook": True,
        "log_level": False,
        "context_prefix": False,
        "chat_append_summary": False,
        "chat_notify_on_states": False,
    },
    PutParams: {
        "state": False,
        "context": False,
        "chat_message": False,
        "chat_message_file": False,
        "chat_append_summary": False,
        "gchat_webhook": True,
    },
}


class PutRequest(msgspec.Struct, kw_only=True, forbid_unknown_fields=True):
    """Full request body for the ``out`` operation."""

    source: Source
    params: PutParams


class Version(msgspec.Struct, kw_only=True, forbid_unknown_fields=True):
    """Concourse resource version; herald versions are commit SHAs."""

    ref: str

    def __str__(self) -> str:
        """Return ``ref: <ref>``."""
        return f"ref: {self.ref}"


class GetParams(msgspec.Struct, kw_only=True, forbid_unknown_fields=True):
    """Parameters of a ``get`` step; herald accepts none."""


class CheckRequest(msgspec.Struct, kw_only=True, forbid_unknown_fields=True):
    """Request body for the ``check`` operation."""

    source: Source
    version: Version | None = None


class GetRequest(msgspec.Struct, kw_only=True, forbid_unknown_fields=True):
    """Request body for the ``in`` operation."""

    source: Source
    version: Version | None = None
    params: GetParams = msgspec.field(default_factory=GetParams)


class MetadataField(msgspec.Struct, kw_only=True):
    """One ``name``/``value`` entry of ``in`` output metadata."""

    name: str
    value: str


class PutResponse(msgspec.Struct, kw_only=True):
    """Output document of the ``out`` operation."""

    version: Version


class GetResponse(msgspec.Struct, kw_only=True):
    """Output document of the ``in`` operation."""

    version: Version
    metadata: list[MetadataField] = msgspec.field(default_factory=list)


def split_chat_message_file(value: str) -> tuple[str, str]:
    """Split ``<dir>/<file>`` into its two components.

    Raises
    ------
    ConfigError
        Unless ``value`` holds exactly one ``/`` with text on both sides.

    """
    directory, sep, filename = value.partition(_CHAT_MESSAGE_FILE_SEPARATOR)
    if not (sep and directory and filename) or _CHAT_MESSAGE_FILE_SEPARATOR in filename:
        raise ConfigError.wrong_chat_message_file(value)
    return directory, filename


_RequestT = typ.TypeVar("_RequestT", bound=msgspec.Struct)


def decode_request(data: bytes, request_type: type[_RequestT]) -> _RequestT:
    """Decode a request body into ``request_type``.

    Raises
    ------
    ConfigError
        If the body is not JSON, has unknown fields, or fails type checks.

    """
    try:
        return msgspec.json.decode(data, type=request_type)
    except msgspec.DecodeError as exc:
        raise ConfigError.parsing(exc) from exc


def parse_put_request(data: bytes, args: cabc.Sequence[str]) -> PutRequest:
    """Decode and validate an ``out`` request.

    Parameters
    ----------
    data
        Raw request body read from stdin.
    args
        Command-line arguments after the executable name; the first one is
        the directory holding the step's input directories.

    Returns
    -------
    PutRequest
        The validated request.

    Raises
    ------
    ConfigError
        On any decoding, validation, or argument failure.

    """
    request = decode_request(data, PutRequest)
    request.source.validate()
    if not args:
        raise ConfigError.missing_input_directory()
    request.params.validate()
    return request
