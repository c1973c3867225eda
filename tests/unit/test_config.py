"""Unit tests for request decoding, validation and redacted printing."""

from __future__ import annotations

import msgspec
import pytest

from herald.config import (
    REDACTED,
    SENSITIVE_FIELDS,
    PutParams,
    PutRequest,
    Source,
    Version,
    decode_request,
    format_fields,
    parse_put_request,
    split_chat_message_file,
)
from herald.errors import ConfigError, InvalidBuildStateError
from herald.state import BuildState
from tests.helpers.bodies import ACCESS_TOKEN, WEBHOOK, body, put_body, source_fields

_ARGS = ["/tmp/build/put"]


class TestParsePutRequest:
    """Tests for parse_put_request."""

    def test_parses_a_minimal_request(self) -> None:
        """Mandatory keys and a state are enough."""
        request = parse_put_request(put_body(), _ARGS)

        assert request.source.owner == "octo", "Expected owner decoded."
        assert request.params.build_state is BuildState.SUCCESS, (
            "Expected state parsed into a BuildState."
        )
        assert request.params.chat_append_summary is None, (
            "Expected an absent override to stay None."
        )
        assert request.source.chat_notify_on_states == [], (
            "Expected no state filter by default."
        )

    def test_parses_notify_states_into_build_states(self) -> None:
        """chat_notify_on_states holds BuildState members after decoding."""
        source = source_fields(chat_notify_on_states=["failure", "error"])

        request = parse_put_request(put_body(source), _ARGS)

        assert request.source.chat_notify_on_states == [
            BuildState.FAILURE,
            BuildState.ERROR,
        ], "Expected parsed states in request order."

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            pytest.param(
                {},
                "source: missing keys: owner, repo, access_token",
                id="all-missing",
            ),
            pytest.param(
                {"owner": "octo", "repo": "reef"},
                "source: missing keys: access_token",
                id="token-missing",
            ),
            pytest.param(
                {"repo": "reef", "access_token": "t"},
                "source: missing keys: owner",
                id="owner-missing",
            ),
            pytest.param(
                {"owner": "", "repo": "", "access_token": "t"},
                "source: missing keys: owner, repo",
                id="empty-counts-as-missing",
            ),
        ],
    )
    def test_reports_every_missing_key(
        self, source: dict[str, str], expected: str
    ) -> None:
        """All missing keys are reported together, in declaration order."""
        with pytest.raises(ConfigError) as excinfo:
            parse_put_request(put_body(source), _ARGS)

        assert str(excinfo.value) == expected, f"Expected {expected!r}."

    def test_rejects_unknown_source_field(self) -> None:
        """A misspelt key fails instead of being ignored."""
        source = source_fields(acces_token="oops")

        with pytest.raises(ConfigError) as excinfo:
            parse_put_request(put_body(source), _ARGS)

        message = str(excinfo.value)
        assert message.startswith("parsing request: "), "Expected a parsing error."
        assert "acces_token" in message, "Expected the unknown field named."

    def test_rejects_unknown_top_level_field(self) -> None:
        """Unknown fields are rejected at every level."""
        document = {
            "source": source_fields(),
            "params": {"state": "success"},
            "version": {"ref": "x"},
        }

        with pytest.raises(ConfigError, match="parsing request: .*version"):
            parse_put_request(body(document), _ARGS)

    def test_rejects_wrong_value_type(self) -> None:
        """A string where a bool is expected is a decode error."""
        source = source_fields(chat_append_summary="yes")

        with pytest.raises(ConfigError, match="^parsing request: "):
            parse_put_request(put_body(source), _ARGS)

    @pytest.mark.parametrize(
        "data",
        [
            pytest.param(b"", id="empty"),
            pytest.param(b"{", id="truncated"),
            pytest.param(b"[]", id="not-an-object"),
        ],
    )
    def test_rejects_malformed_json(self, data: bytes) -> None:
        """Bodies that are not a request object fail to parse."""
        with pytest.raises(ConfigError, match="^parsing request: "):
            parse_put_request(data, _ARGS)

    def test_rejects_unknown_state(self) -> None:
        """An unknown state fails decoding with the state error text."""
        with pytest.raises(ConfigError) as excinfo:
            parse_put_request(put_body(state="banana"), _ARGS)

        assert "invalid build state: banana" in str(excinfo.value), (
            "Expected the state error text inside the parsing error."
        )

    def test_requires_state(self) -> None:
        """state is mandatory."""
        document = {"source": source_fields(), "params": {}}

        with pytest.raises(ConfigError, match="state"):
            parse_put_request(body(document), _ARGS)

    def test_requires_input_directory_argument(self) -> None:
        """out needs the directory holding its inputs."""
        with pytest.raises(ConfigError) as excinfo:
            parse_put_request(put_body(), [])

        assert str(excinfo.value) == "arguments: missing input directory", (
            "Expected the missing argument error."
        )

    def test_source_is_validated_before_arguments(self) -> None:
        """Missing keys win over a missing argument."""
        with pytest.raises(ConfigError, match="^source: missing keys"):
            parse_put_request(put_body({}), [])

    def test_rejects_malformed_chat_message_file(self) -> None:
        """chat_message_file must be <dir>/<file>."""
        with pytest.raises(ConfigError) as excinfo:
            parse_put_request(put_body(chat_message_file="msg.txt"), _ARGS)

        assert str(excinfo.value) == (
            "chat_message_file: wrong format: have: msg.txt, "
            "want: path of the form: <dir>/<file>"
        ), "Expected the format error naming the value."

    def test_encoded_request_decodes_to_an_equal_request(self) -> None:
        """A request survives a JSON round trip unchanged."""
        request = PutRequest(
            source=Source(
                owner="octo",
                repo="reef",
                access_token=ACCESS_TOKEN,
                gchat_webhook=WEBHOOK,
                chat_append_summary=True,
                chat_notify_on_states=["failure", "error"],
            ),
            params=PutParams(
                state="failure",
                context="deploy",
                chat_message="deployed",
                chat_message_file="msgdir/msg.txt",
                chat_append_summary=False,
            ),
        )

        decoded = decode_request(msgspec.json.encode(request), PutRequest)

        assert decoded == request, "Expected an equal request after decoding."
        assert decoded.params.build_state is BuildState.FAILURE, (
            "Expected the state parsed again."
        )


class TestSplitChatMessageFile:
    """Tests for split_chat_message_file."""

    def test_splits_directory_and_file(self) -> None:
        """The shape <dir>/<file> splits in two."""
        assert split_chat_message_file("msgdir/msg.txt") == ("msgdir", "msg.txt"), (
            "Expected directory and file."
        )

    @pytest.mark.parametrize(
        "value",
        [
            pytest.param("msg.txt", id="no-separator"),
            pytest.param("/msg.txt", id="empty-directory"),
            pytest.param("msgdir/", id="empty-file"),
            pytest.param("a/b/msg.txt", id="two-separators"),
            pytest.param("/", id="separator-only"),
        ],
    )
    def test_rejects_other_shapes(self, value: str) -> None:
        """Exactly one separator with text on both sides is required."""
        with pytest.raises(ConfigError, match="chat_message_file: wrong format"):
            split_chat_message_file(value)


class TestDirectConstruction:
    """Structs validate states when built in code too."""

    def test_put_params_rejects_unknown_state(self) -> None:
        """Constructing PutParams runs the same state check."""
        with pytest.raises(InvalidBuildStateError):
            PutParams(state="done")

    def test_source_rejects_unknown_notify_state(self) -> None:
        """Each notify state is checked."""
        with pytest.raises(InvalidBuildStateError, match="invalid build state: ok"):
            Source(chat_notify_on_states=["success", "ok"])


class TestRedaction:
    """Tests for printed forms of requests."""

    def test_str_redacts_secrets_and_aligns_values(self) -> None:
        """Secrets print as a marker, values line up in one column."""
        source = Source(
            owner="octo",
            repo="reef",
            access_token=ACCESS_TOKEN,
            gchat_webhook=WEBHOOK,
            chat_notify_on_states=["failure", "error"],
        )

        lines = str(source).splitlines()

        width = len("chat_notify_on_states:") + 1
        assert lines[0] == "owner:".ljust(width) + "octo", "Expected aligned owner."
        assert lines[2] == "access_token:".ljust(width) + REDACTED, (
            "Expected the token redacted."
        )
        assert lines[3] == "gchat_webhook:".ljust(width) + REDACTED, (
            "Expected the webhook redacted."
        )
        assert lines[6] == "chat_append_summary:".ljust(width) + "false", (
            "Expected booleans as true/false."
        )
        assert lines[7] == "chat_notify_on_states: [failure error]", (
            "Expected states as a bracketed list."
        )

    def test_empty_secret_prints_empty(self) -> None:
        """An unset secret is distinguishable from a set one."""
        params = PutParams(state="pending")

        assert "gchat_webhook:" in str(params), "Expected the field listed."
        assert REDACTED not in str(params), "Expected nothing redacted."

    @pytest.mark.parametrize(
        ("override", "expected"),
        [
            pytest.param(None, "false", id="unset"),
            pytest.param(False, "false", id="off"),
            pytest.param(True, "true", id="on"),
        ],
    )
    def test_append_summary_override_prints_as_boolean(
        self,
        override: bool | None,  # noqa: FBT001
        expected: str,
    ) -> None:
        """An unset override prints like an explicit false."""
        params = PutParams(state="pending", chat_append_summary=override)

        line = next(
            line
            for line in str(params).splitlines()
            if line.startswith("chat_append_summary:")
        )

        assert line.split()[1] == expected, f"Expected {expected}."

    @pytest.mark.parametrize(
        "struct",
        [
            pytest.param(
                Source(access_token=ACCESS_TOKEN, gchat_webhook=WEBHOOK), id="source"
            ),
            pytest.param(PutParams(state="error", gchat_webhook=WEBHOOK), id="params"),
        ],
    )
    def test_secrets_never_printed(self, struct: msgspec.Struct) -> None:
        """Neither str() nor repr() leaks a secret."""
        for rendered in (str(struct), repr(struct)):
            assert ACCESS_TOKEN not in rendered, "Expected token hidden."
            assert WEBHOOK not in rendered, "Expected webhook hidden."

    def test_repr_is_constructor_style(self) -> None:
        """repr() names the struct and its fields."""
        rendered = repr(PutParams(state="error", context="unit"))

        assert rendered.startswith("PutParams(state='error', context='unit'"), (
            "Expected a constructor-style repr."
        )

    @pytest.mark.parametrize("struct_type", [Source, PutParams])
    def test_every_field_is_classified(self, struct_type: type[msgspec.Struct]) -> None:
        """Adding a field without classifying it must fail a test."""
        classified = set(SENSITIVE_FIELDS[struct_type])

        assert set(struct_type.__struct_fields__) == classified, (
            f"Expected every {struct_type.__name__} field classified."
        )

    def test_unclassified_field_raises(self) -> None:
        """format_fields refuses fields missing from the table."""
        with pytest.raises(KeyError, match=r"Source\.repo has no sensitivity"):
            format_fields(Source(), {"owner": False})


class TestOtherRequests:
    """Tests for the supporting request and response structs."""

    def test_version_prints_its_ref(self) -> None:
        """Version renders as ref: <ref>."""
        assert str(Version(ref="abc")) == "ref: abc", "Expected ref rendering."

    def test_decode_request_wraps_errors(self) -> None:
        """decode_request reports failures as ConfigError."""
        with pytest.raises(ConfigError, match="^parsing request: "):
            decode_request(b'{"ref": 1}', Version)
