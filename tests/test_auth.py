"""Tests for the interactive consent flow."""

import io
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from oauthlib.oauth2.rfc6749.errors import InvalidGrantError
from requests.exceptions import ConnectionError as RequestsConnectionError

from gmail_session.auth import OOB_REDIRECT_URI, token_from_console, token_from_local_server
from gmail_session.exceptions import TokenExchangeError, UserInputError
from gmail_session.models import AuthorizationConfig

CONSENT_URL = "https://accounts.google.com/o/oauth2/auth?client_id=X&access_type=offline"


@pytest.fixture
def config():
    return AuthorizationConfig(client_id="X", client_secret="Y", scopes=["read"])


@pytest.fixture
def flow():
    flow = MagicMock()
    flow.authorization_url.return_value = (CONSENT_URL, "state")
    flow.oauth2session.token = {
        "access_token": "tok1",
        "token_type": "Bearer",
        "refresh_token": "ref1",
        "expires_at": 1893499200.0,
    }
    return flow


@pytest.fixture
def flow_class(flow):
    with patch("gmail_session.auth.Flow") as flow_class:
        flow_class.from_client_config.return_value = flow
        yield flow_class


class TestTokenFromConsole:
    """Tests for the pasted-code consent flow."""

    def test_exchanges_trimmed_code(self, config, flow, flow_class):
        """Test the prompt is shown and the trimmed code is exchanged."""
        stdout = io.StringIO()
        record = token_from_console(config, stdin=io.StringIO("  abc123 \n"), stdout=stdout)

        flow.fetch_token.assert_called_once_with(code="abc123")
        assert record.access_token == "tok1"
        assert record.refresh_token == "ref1"
        assert record.expiry == datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)

        output = stdout.getvalue()
        assert CONSENT_URL in output
        assert output.endswith("Enter code> ")

    def test_requests_offline_access(self, config, flow, flow_class):
        """Test the consent URL asks for a refresh token."""
        token_from_console(config, stdin=io.StringIO("abc123\n"), stdout=io.StringIO())

        _, kwargs = flow.authorization_url.call_args
        assert kwargs["access_type"] == "offline"
        assert kwargs["prompt"] == "consent"

    def test_default_redirect_is_out_of_band(self, config, flow_class):
        """Test the out-of-band redirect is used when none is configured."""
        token_from_console(config, stdin=io.StringIO("abc123\n"), stdout=io.StringIO())

        args, kwargs = flow_class.from_client_config.call_args
        assert args[0] == config.to_client_config()
        assert kwargs["scopes"] == ["read"]
        assert kwargs["redirect_uri"] == OOB_REDIRECT_URI

    def test_redirect_from_client_secret(self, flow_class):
        """Test the first registered redirect URI is preferred."""
        config = AuthorizationConfig(
            client_id="X", client_secret="Y", redirect_uris=["http://localhost", "http://other"]
        )
        token_from_console(config, stdin=io.StringIO("abc123\n"), stdout=io.StringIO())

        _, kwargs = flow_class.from_client_config.call_args
        assert kwargs["redirect_uri"] == "http://localhost"

    def test_redirect_override(self, config, flow_class):
        """Test an explicit redirect URI wins."""
        token_from_console(
            config,
            stdin=io.StringIO("abc123\n"),
            stdout=io.StringIO(),
            redirect_uri="http://127.0.0.1:9000",
        )

        _, kwargs = flow_class.from_client_config.call_args
        assert kwargs["redirect_uri"] == "http://127.0.0.1:9000"

    @pytest.mark.parametrize("stdin", ["", "\n", "   \n"])
    def test_no_code(self, config, flow, flow_class, stdin):
        """Test a closed or blank input stream is a user input error."""
        with pytest.raises(UserInputError):
            token_from_console(config, stdin=io.StringIO(stdin), stdout=io.StringIO())
        flow.fetch_token.assert_not_called()

    def test_unreadable_input(self, config, flow, flow_class):
        """Test a failing input stream is a user input error."""
        stdin = MagicMock()
        stdin.readline.side_effect = OSError("stdin closed")
        with pytest.raises(UserInputError):
            token_from_console(config, stdin=stdin, stdout=io.StringIO())

    @pytest.mark.parametrize(
        "error",
        [
            InvalidGrantError(description="Bad Request"),
            RequestsConnectionError("network unreachable"),
            ValueError("Please supply either code or authorization_response parameters."),
            Warning("Scope has changed from \"read labels\" to \"read\"."),
        ],
    )
    def test_exchange_failure(self, config, flow, flow_class, error):
        """Test exchange failures are wrapped once, without retrying."""
        flow.fetch_token.side_effect = error

        with pytest.raises(TokenExchangeError) as exc_info:
            token_from_console(config, stdin=io.StringIO("abc123\n"), stdout=io.StringIO())

        assert exc_info.value.__cause__ is error
        assert flow.fetch_token.call_count == 1

    def test_response_without_access_token(self, config, flow, flow_class):
        """Test an empty token response is an exchange failure."""
        flow.oauth2session.token = {"token_type": "Bearer"}
        with pytest.raises(TokenExchangeError):
            token_from_console(config, stdin=io.StringIO("abc123\n"), stdout=io.StringIO())


class TestTokenFromLocalServer:
    """Tests for the loopback redirect variant."""

    def test_runs_local_server(self, config, flow):
        """Test the loopback server is started with offline access."""
        with patch("gmail_session.auth.InstalledAppFlow") as flow_class:
            flow_class.from_client_config.return_value = flow
            record = token_from_local_server(config, port=8080, open_browser=False)

        flow.run_local_server.assert_called_once_with(
            port=8080, open_browser=False, prompt="consent", access_type="offline"
        )
        assert record.access_token == "tok1"

    def test_failure(self, config, flow):
        """Test a failed local flow is an exchange error."""
        flow.run_local_server.side_effect = OSError("Address already in use")
        with patch("gmail_session.auth.InstalledAppFlow") as flow_class:
            flow_class.from_client_config.return_value = flow
            with pytest.raises(TokenExchangeError):
                token_from_local_server(config, port=8080)
