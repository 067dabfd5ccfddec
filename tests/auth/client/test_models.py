from datetime import datetime, timedelta, timezone

import pytest

from tokenflow.auth.client.models.claims import IdentityClaims
from tokenflow.auth.client.models.errors import ArgumentError, ServerError
from tokenflow.auth.client.models.flow import AuthorizationRequest, FlowState
from tokenflow.auth.client.models.tokens import (
    DEFAULT_EXPIRES_IN_SECONDS,
    FailedResult,
    SucceededResult,
    UserInfo,
    compute_expires_on,
)


class TestAuthorizationRequest:
    def test_endpoints_are_derived_from_authority(self):
        request = AuthorizationRequest(
            authority="https://login.example.com/common",
            client_id="abc",
            resource="r",
            redirect_uri="app://cb",
        )

        assert request.authorization_endpoint == (
            "https://login.example.com/common/oauth2/authorize"
        )
        assert request.token_endpoint == "https://login.example.com/common/oauth2/token"

    @pytest.mark.parametrize("field", ["authority", "client_id"])
    def test_blank_required_field_raises(self, field):
        # Arrange
        fields = {
            "authority": "https://login.example.com/common",
            "client_id": "abc",
            "resource": "r",
            "redirect_uri": "app://cb",
        }
        fields[field] = "  "

        # Act & Assert
        with pytest.raises(ArgumentError, match=field):
            AuthorizationRequest(**fields)

    def test_argument_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            AuthorizationRequest(authority="", client_id="abc", resource="r", redirect_uri="x")


class TestFlowState:
    @pytest.mark.parametrize(
        "state,terminal",
        [
            (FlowState.BUILT, False),
            (FlowState.EXCHANGING, False),
            (FlowState.SUCCEEDED, True),
            (FlowState.FAILED, True),
        ],
    )
    def test_terminal_states(self, state, terminal):
        assert state.is_terminal is terminal


class TestUserInfo:
    def test_upn_is_preferred(self):
        info = UserInfo.from_claims(
            IdentityClaims(sub="s", upn="u@x.com", email="e@x.com", tid="t")
        )

        assert info.user_id == "u@x.com"
        assert info.is_user_id_displayable
        assert info.tenant_id == "t"

    def test_email_when_no_upn(self):
        info = UserInfo.from_claims(IdentityClaims(sub="s", email="e@x.com"))

        assert info.user_id == "e@x.com"
        assert info.is_user_id_displayable

    def test_subject_is_not_displayable(self):
        info = UserInfo.from_claims(IdentityClaims(sub="s"))

        assert info.user_id == "s"
        assert not info.is_user_id_displayable

    def test_no_identifier(self):
        info = UserInfo.from_claims(IdentityClaims(given_name="Ada"))

        assert info.user_id is None
        assert info.given_name == "Ada"


class TestResults:
    def test_failed_result_raises_server_error(self):
        # Arrange
        result = FailedResult(error_code="invalid_grant", error_description="bad token")

        # Act & Assert
        with pytest.raises(ServerError) as exc_info:
            result.raise_for_status()

        assert exc_info.value.error == "invalid_grant"
        assert exc_info.value.error_description == "bad token"
        assert not result.is_success()

    def test_succeeded_result_does_not_raise(self):
        result = SucceededResult(
            access_token="AT", expires_on=datetime.now(timezone.utc) + timedelta(hours=1)
        )

        result.raise_for_status()
        assert result.is_success()
        assert not result.is_expired()

    def test_expired_result(self):
        result = SucceededResult(
            access_token="AT", expires_on=datetime(2000, 1, 1, tzinfo=timezone.utc)
        )

        assert result.is_expired()

    def test_compute_expires_on_defaults(self):
        captured_at = datetime(2024, 1, 1, tzinfo=timezone.utc)

        assert compute_expires_on(None, captured_at) == captured_at + timedelta(
            seconds=DEFAULT_EXPIRES_IN_SECONDS
        )
        assert compute_expires_on(60, captured_at) == captured_at + timedelta(seconds=60)
