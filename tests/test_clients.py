"""Tests for the Salesforce and WordPress API wrappers."""

import pytest

from object_sync.salesforce_sync import salesforce_client
from object_sync.salesforce_sync.salesforce_client import SalesforceClient
from object_sync import wordpress_client
from object_sync.wordpress_client import WordPressClient


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise salesforce_client.requests.HTTPError(f"{self.status_code} error")


class FakeSimpleSalesforce:
    """Records how simple_salesforce.Salesforce was built."""

    describe_calls = 0

    def __init__(self, **kwargs):
        self.kwargs = kwargs

    def describe(self):
        FakeSimpleSalesforce.describe_calls += 1
        return {"sobjects": [
            {"name": "Contact", "keyPrefix": "003"},
            {"name": "Account", "keyPrefix": "001"},
            {"name": "SomeView", "keyPrefix": None},
        ]}


@pytest.fixture
def offline_client(monkeypatch):
    monkeypatch.setattr(salesforce_client, "Salesforce", FakeSimpleSalesforce)
    client = SalesforceClient(connect=False)
    client.consumer_key = "key"
    client.consumer_secret = "secret"
    client.callback_url = "http://localhost/admin/authorize"
    return client


class TestSalesforceClient:
    def test_unconnected_client_is_not_authorized(self, offline_client):
        assert offline_client.is_authorized is False

    def test_authorization_url(self, offline_client):
        url = offline_client.get_authorization_code()
        assert url.startswith("https://login.salesforce.com/services/oauth2/authorize?")
        assert "response_type=code" in url
        assert "client_id=key" in url
        assert "redirect_uri=http%3A%2F%2Flocalhost%2Fadmin%2Fauthorize" in url

    def test_request_token_connects(self, offline_client, monkeypatch):
        posted = {}

        def fake_post(url, data):
            posted.update(url=url, data=data)
            return FakeResponse({
                "access_token": "00D!token",
                "instance_url": "https://example.my.salesforce.com",
                "refresh_token": "refresh",
            })

        monkeypatch.setattr(salesforce_client.requests, "post", fake_post)
        offline_client.request_token("the-code")

        assert posted["url"] == "https://login.salesforce.com/services/oauth2/token"
        assert posted["data"]["grant_type"] == "authorization_code"
        assert posted["data"]["code"] == "the-code"
        assert offline_client.is_authorized
        assert offline_client.refresh_token == "refresh"
        assert offline_client.sf.kwargs["session_id"] == "00D!token"

    def test_token_response_without_instance_url(self, offline_client, monkeypatch):
        monkeypatch.setattr(salesforce_client.requests, "post", lambda url, data: FakeResponse({"access_token": "x"}))
        with pytest.raises(ValueError):
            offline_client.request_token("the-code")
        assert not offline_client.is_authorized

    def test_rejected_code(self, offline_client, monkeypatch):
        monkeypatch.setattr(salesforce_client.requests, "post", lambda url, data: FakeResponse({}, 400))
        with pytest.raises(salesforce_client.requests.HTTPError):
            offline_client.request_token("bad")

    def test_logout(self, offline_client):
        offline_client.sf = FakeSimpleSalesforce()
        offline_client.access_token = "token"
        offline_client.logout()
        assert not offline_client.is_authorized
        assert offline_client.access_token is None

    def test_sobject_type_from_key_prefix(self, offline_client):
        offline_client.sf = FakeSimpleSalesforce()
        FakeSimpleSalesforce.describe_calls = 0

        assert offline_client.get_sobject_type("003xx000004TmiQAAS") == "Contact"
        assert offline_client.get_sobject_type("001xx000003DGb2AAG") == "Account"
        assert offline_client.get_sobject_type("a0Xxx0000000001") is None
        assert offline_client.get_sobject_type("") is None
        assert FakeSimpleSalesforce.describe_calls == 1

    def test_api_versions_use_instance_url(self, offline_client, monkeypatch):
        requested = []

        def fake_get(url, timeout):
            requested.append(url)
            return FakeResponse([{"version": "39.0", "url": "/services/data/v39.0"}, {"version": "40.0"}])

        monkeypatch.setattr(salesforce_client.requests, "get", fake_get)
        offline_client.instance_url = "https://example.my.salesforce.com"
        assert offline_client.get_api_versions() == ["39.0", "40.0"]
        assert requested == ["https://example.my.salesforce.com/services/data/"]

    def test_query_drops_attributes(self, offline_client):
        class QueryingSalesforce(FakeSimpleSalesforce):
            def query(self, soql):
                return {"totalSize": 1, "records": [{"attributes": {"type": "Contact"}, "Id": "003A", "Name": "Ada"}]}

        offline_client.sf = QueryingSalesforce()
        assert offline_client.query("SELECT Name, Id from Contact LIMIT 100") == [{"Id": "003A", "Name": "Ada"}]

    def test_connect_without_credentials(self, monkeypatch):
        for name in ("SALESFORCE_USERNAME", "SALESFORCE_PASSWORD", "SALESFORCE_ACCESS_TOKEN", "SALESFORCE_REFRESH_TOKEN"):
            monkeypatch.delenv(name, raising=False)
        with pytest.raises(ValueError):
            SalesforceClient()


class TestWordPressClient:
    @pytest.fixture
    def client(self):
        return WordPressClient("https://example.org/", "admin", "abcd efgh ijkl")

    def test_app_password_spaces_removed(self, client):
        assert client.auth == ("admin", "abcdefghijkl")

    def test_rest_routes(self, client):
        assert client._url("user", 5) == "https://example.org/wp-json/wp/v2/users/5"
        assert client._url("book") == "https://example.org/wp-json/wp/v2/book"

    def test_fields_from_schema(self, client, monkeypatch):
        schema = {"schema": {"properties": {
            "id": {"type": "integer", "readonly": True},
            "email": {"type": "string"},
            "meta": {"type": ["object", "null"]},
        }}}
        monkeypatch.setattr(wordpress_client.requests, "options", lambda url, auth, timeout: FakeResponse(schema))

        assert client.get_wordpress_object_fields("user") == [
            {"key": "id", "type": "integer", "editable": False},
            {"key": "email", "type": "string", "editable": True},
            {"key": "meta", "type": "object", "editable": True},
        ]

    def test_no_object_no_fields(self, client):
        assert client.get_wordpress_object_fields("") == []

    def test_create_returns_id(self, client, monkeypatch):
        sent = {}

        def fake_post(url, json, auth, timeout):
            sent.update(url=url, json=json)
            return FakeResponse({"id": 42}, 201)

        monkeypatch.setattr(wordpress_client.requests, "post", fake_post)
        assert client.create_wordpress_object("post", {"title": "Hello"}) == 42
        assert sent["url"] == "https://example.org/wp-json/wp/v2/posts"
