import base64
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from errors import ConfigurationError, MalformedResponseError, TokenExchangeError
from oauth.authorization import AuthorizationFlow, encode_state
from oauth.models import AppCredentials, AuthData, AuthFlavor, OAuthProviderConfig
from oauth.pkce import code_challenge_for

AUTH_URL = "https://auth.test/authorize"
TOKEN_URL = "https://auth.test/token"
REDIRECT = "https://app.test/callback"


def make_config(flavor, extra_params=None):
    scopes = {"PHOTOS": frozenset({"openid", "photos.write"})}
    return OAuthProviderConfig(
        service_name="Test",
        auth_url=AUTH_URL,
        token_url=TOKEN_URL,
        export_scopes=scopes,
        import_scopes=scopes,
        auth_flavor=flavor,
        additional_auth_url_parameters=extra_params or {},
    )


class TokenEndpoint:
    def __init__(self, response=None):
        self.forms = []
        self.response = response or httpx.Response(
            200, json={"access_token": "at", "refresh_token": "rt", "expires_in": 60}
        )

    def __call__(self, request):
        self.forms.append({k: v[0] for k, v in parse_qs(request.content.decode()).items()})
        return self.response


def make_flow(flavor, endpoint, credentials=None, **config_kwargs):
    client = httpx.Client(transport=httpx.MockTransport(endpoint))
    credentials = credentials or AppCredentials(key="client-key", secret="client-secret")
    return AuthorizationFlow(make_config(flavor, **config_kwargs), credentials, "PHOTOS", http_client=client)


def query_of(url):
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


def test_standard_authorization_url():
    flow = make_flow(AuthFlavor.STANDARD, TokenEndpoint())
    config = flow.generate_configuration(REDIRECT, "job-42")

    assert config.auth_url.startswith(AUTH_URL + "?")
    assert config.token_url == TOKEN_URL
    query = query_of(config.auth_url)
    assert query["response_type"] == "code"
    assert query["client_id"] == "client-key"
    assert query["redirect_uri"] == REDIRECT
    assert query["scope"] == "openid photos.write"
    assert base64.urlsafe_b64decode(query["state"]).decode() == "job-42"
    assert "code_challenge" not in query


def test_additional_parameters_are_appended():
    flow = make_flow(AuthFlavor.STANDARD, TokenEndpoint(), extra_params={"prompt": "consent"})
    query = query_of(flow.generate_configuration(REDIRECT, "job").auth_url)
    assert query["prompt"] == "consent"


def test_standard_exchange_sends_client_secret():
    endpoint = TokenEndpoint()
    flow = make_flow(AuthFlavor.STANDARD, endpoint)
    flow.generate_configuration(REDIRECT, "job")

    auth_data = flow.generate_auth_data(REDIRECT, "the-code", "job")

    assert auth_data == AuthData(access_token="at", refresh_token="rt", token_server_url=TOKEN_URL)
    assert endpoint.forms == [{
        "client_id": "client-key",
        "grant_type": "authorization_code",
        "redirect_uri": REDIRECT,
        "code": "the-code",
        "client_secret": "client-secret",
    }]


def test_pkce_round_trip_sends_matching_verifier():
    endpoint = TokenEndpoint()
    flow = make_flow(AuthFlavor.PKCE, endpoint, credentials=AppCredentials(key="client-key"))

    query = query_of(flow.generate_configuration(REDIRECT, "job").auth_url)
    assert query["code_challenge_method"] == "S256"

    flow.generate_auth_data(REDIRECT, "the-code", "job")

    form = endpoint.forms[0]
    assert "client_secret" not in form
    assert len(form["code_verifier"]) == 43
    assert code_challenge_for(form["code_verifier"]) == query["code_challenge"]


def test_pkce_verifier_is_single_use():
    flow = make_flow(AuthFlavor.PKCE, TokenEndpoint(), credentials=AppCredentials(key="client-key"))
    flow.generate_configuration(REDIRECT, "job")
    flow.generate_auth_data(REDIRECT, "code", "job")

    with pytest.raises(ValueError):
        flow.generate_auth_data(REDIRECT, "code", "job")


def test_each_attempt_gets_a_new_challenge():
    flow = make_flow(AuthFlavor.PKCE, TokenEndpoint(), credentials=AppCredentials(key="client-key"))
    first = query_of(flow.generate_configuration(REDIRECT, "job").auth_url)["code_challenge"]
    second = query_of(flow.generate_configuration(REDIRECT, "job").auth_url)["code_challenge"]
    assert first != second


def test_rejects_extra_and_initial_auth_data():
    flow = make_flow(AuthFlavor.STANDARD, TokenEndpoint())
    with pytest.raises(ValueError):
        flow.generate_auth_data(REDIRECT, "code", "job", extra="something")
    with pytest.raises(ValueError):
        flow.generate_auth_data(REDIRECT, "code", "job", initial_auth_data=AuthData("a", "r", TOKEN_URL))


def test_rejected_exchange_raises_with_status_and_body():
    flow = make_flow(AuthFlavor.STANDARD, TokenEndpoint(httpx.Response(400, text="invalid_grant")))
    with pytest.raises(TokenExchangeError) as exc_info:
        flow.generate_auth_data(REDIRECT, "code", "job")
    assert exc_info.value.status_code == 400
    assert "invalid_grant" in str(exc_info.value)


@pytest.mark.parametrize("response", [
    httpx.Response(200, text="not json"),
    httpx.Response(200, json={"token_type": "bearer"}),
])
def test_malformed_token_response(response):
    flow = make_flow(AuthFlavor.STANDARD, TokenEndpoint(response))
    with pytest.raises(MalformedResponseError):
        flow.generate_auth_data(REDIRECT, "code", "job")


def test_unknown_data_type_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        AuthorizationFlow(make_config(AuthFlavor.STANDARD), AppCredentials(key="k", secret="s"), "VIDEOS")


def test_state_is_base64url_of_job_id():
    assert encode_state("job-1") == base64.urlsafe_b64encode(b"job-1").decode()
