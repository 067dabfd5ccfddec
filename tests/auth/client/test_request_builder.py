"""Tests for authorization URI and token request body construction."""

from urllib.parse import parse_qs, urlsplit
from uuid import UUID

import pytest

from tokenflow.auth.client.models.errors import EncodingError
from tokenflow.auth.client.models.flow import AuthorizationRequest, PromptBehavior
from tokenflow.auth.client.primitives.state import (
    ProtocolState,
    decode_protocol_state,
)
from tokenflow.auth.client.services.requests import (
    ClientInfo,
    RequestBuilder,
    form_encode,
)

AUTHORITY = "https://login.example.com/common"
RESOURCE = "https://api.example.com"
CLIENT_INFO = ClientInfo(
    sku="Python", version="1.2.3", os_version="6.1", device_model="x86_64"
)


def make_request(**overrides) -> AuthorizationRequest:
    fields = {
        "authority": AUTHORITY,
        "client_id": "abc",
        "resource": RESOURCE,
        "redirect_uri": "app://cb",
    }
    fields.update(overrides)
    return AuthorizationRequest(**fields)


class TestBuildAuthorizationUri:
    def test_required_parameters_are_encoded_in_order(self):
        # Arrange
        builder = RequestBuilder(make_request(), CLIENT_INFO)

        # Act
        uri = builder.build_authorization_uri()

        # Assert
        assert uri.startswith(
            "https://login.example.com/common/oauth2/authorize?"
            "response_type=code&client_id=abc"
            "&resource=https%3A%2F%2Fapi.example.com"
            "&redirect_uri=app%3A%2F%2Fcb&state="
        )

    def test_state_binds_authority_and_resource(self):
        # Arrange
        builder = RequestBuilder(make_request(), CLIENT_INFO)

        # Act
        query = parse_qs(urlsplit(builder.build_authorization_uri()).query)
        state = ProtocolState.from_query(decode_protocol_state(query["state"][0]))

        # Assert
        assert state.authority == AUTHORITY
        assert state.resource == RESOURCE

    def test_dynamic_values_are_percent_encoded(self):
        # Arrange
        builder = RequestBuilder(
            make_request(login_hint="user name@example.com"), CLIENT_INFO
        )

        # Act
        query = urlsplit(builder.build_authorization_uri()).query

        # Assert
        assert ":" not in query
        assert "/" not in query
        assert " " not in query
        assert "login_hint=user+name%40example.com" in query

    def test_telemetry_parameters_are_included(self):
        # Act
        uri = RequestBuilder(make_request(), CLIENT_INFO).build_authorization_uri()

        # Assert
        assert "&x-client-SKU=Python&x-client-Ver=1.2.3&x-client-OS=6.1" in uri
        assert "&x-client-DM=x86_64" in uri

    @pytest.mark.parametrize("login_hint", [None, "", "   "])
    def test_blank_login_hint_is_omitted(self, login_hint):
        uri = RequestBuilder(
            make_request(login_hint=login_hint), CLIENT_INFO
        ).build_authorization_uri()

        assert "login_hint" not in uri

    def test_correlation_id_is_sent_as_client_request_id(self):
        # Arrange
        correlation_id = UUID("12345678-1234-5678-1234-567812345678")
        builder = RequestBuilder(make_request(correlation_id=correlation_id), CLIENT_INFO)

        # Act
        query = parse_qs(urlsplit(builder.build_authorization_uri()).query)

        # Assert
        assert query["client-request-id"] == [str(correlation_id)]

    def test_no_correlation_id_means_no_client_request_id(self):
        uri = RequestBuilder(make_request(), CLIENT_INFO).build_authorization_uri()

        assert "client-request-id" not in uri

    @pytest.mark.parametrize(
        "prompt,expected",
        [
            (PromptBehavior.AUTO, False),
            (PromptBehavior.ALWAYS, True),
            (PromptBehavior.REFRESH_SESSION, False),
            (PromptBehavior.FORCE_LOGIN, False),
        ],
    )
    def test_prompt_login_only_for_always(self, prompt, expected):
        uri = RequestBuilder(
            make_request(prompt=prompt), CLIENT_INFO
        ).build_authorization_uri()

        assert ("&prompt=login" in uri) is expected

    @pytest.mark.parametrize("extra", ["domain_hint=example.com", "&domain_hint=example.com"])
    def test_extra_query_parameters_appended_verbatim(self, extra):
        # Act
        uri = RequestBuilder(
            make_request(extra_query_parameters=extra), CLIENT_INFO
        ).build_authorization_uri()

        # Assert
        assert uri.endswith("&domain_hint=example.com")
        assert "&&" not in uri

    def test_unencodable_value_raises_encoding_error(self):
        builder = RequestBuilder(make_request(login_hint="bad\ud800"), CLIENT_INFO)

        with pytest.raises(EncodingError):
            builder.build_authorization_uri()


class TestTokenRequestBodies:
    def setup_method(self):
        # Arrange
        self.builder = RequestBuilder(make_request(), CLIENT_INFO)

    def test_authorization_code_grant_body(self):
        body = self.builder.build_authorization_code_grant_body("XYZ")

        assert body == (
            "grant_type=authorization_code&code=XYZ&client_id=abc"
            "&redirect_uri=app%3A%2F%2Fcb"
        )

    def test_code_is_form_encoded(self):
        body = self.builder.build_authorization_code_grant_body("a b/c")

        assert "&code=a+b%2Fc&" in body

    def test_refresh_grant_body_with_resource(self):
        body = self.builder.build_refresh_grant_body("RT1", RESOURCE)

        assert body == (
            "grant_type=refresh_token&refresh_token=RT1&client_id=abc"
            "&resource=https%3A%2F%2Fapi.example.com"
        )

    @pytest.mark.parametrize("resource", [None, "", "  "])
    def test_refresh_grant_body_omits_blank_resource(self, resource):
        body = self.builder.build_refresh_grant_body("RT1", resource)

        assert body == "grant_type=refresh_token&refresh_token=RT1&client_id=abc"


class TestClientInfo:
    def test_defaults_describe_the_running_platform(self):
        info = ClientInfo()

        assert info.sku == "Python"
        assert info.version
        assert isinstance(info.os_version, str)

    def test_form_encode_uses_plus_for_spaces(self):
        assert form_encode("a b&c=d") == "a+b%26c%3Dd"
