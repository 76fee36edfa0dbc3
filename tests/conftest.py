"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from object_sync.admin import AdminFormController, TransientStore
from object_sync.salesforce_sync import MappingStore

ADMIN = "http://localhost/admin"


class FakeSalesforce:
    """Stands in for SalesforceClient without a network connection."""

    def __init__(self, authorized: bool = True):
        self.is_authorized = authorized
        self.instance_url = "https://example.my.salesforce.com"
        self.api_version = "40.0"
        self.describes = {
            "Contact": {
                "fields": [
                    {"name": "Id", "type": "id"},
                    {"name": "FirstName", "type": "string"},
                    {"name": "LastName", "type": "string"},
                    {"name": "Email", "type": "email"},
                ],
                "recordTypeInfos": [
                    {"recordTypeId": "012000000000000AAA", "name": "Master"},
                ],
            },
            "Account": {
                "fields": [{"name": "Name", "type": "string"}],
                "recordTypeInfos": [
                    {"recordTypeId": "012000000000000AAA", "name": "Master"},
                    {"recordTypeId": "012300000000001AAA", "name": "Household"},
                ],
            },
        }
        self.prefixes = {"003": "Contact", "001": "Account"}
        self.records = {}
        self.created = []
        self.updated = []
        self.fail_create = False
        self.queries = []
        self.query_error = None

    def object_describe(self, object_name):
        return self.describes[object_name]

    def get_sobject_type(self, salesforce_id):
        return self.prefixes.get(salesforce_id[:3])

    def get_record(self, object_name, salesforce_id):
        return dict(self.records[salesforce_id])

    def create_record(self, object_name, data):
        if self.fail_create:
            return None
        salesforce_id = f"003xx00000{len(self.created) + 1:05d}"
        self.created.append((object_name, data))
        self.records[salesforce_id] = dict(data, Id=salesforce_id)
        return salesforce_id

    def update_record(self, object_name, salesforce_id, data):
        self.updated.append((object_name, salesforce_id, data))
        return True

    def get_api_versions(self):
        return ["39.0", "40.0", "41.0"]

    def query(self, soql):
        self.queries.append(soql)
        if self.query_error:
            raise self.query_error
        return [{"Id": salesforce_id, "Name": "Ada Lovelace"} for salesforce_id in ("003A", "003B")]

    def get_authorization_code(self):
        return "https://login.salesforce.com/services/oauth2/authorize?response_type=code"


class FakeWordPress:
    """Stands in for WordPressClient."""

    def __init__(self):
        self.fields = {
            "post": [
                {"key": "title", "type": "object", "editable": True},
                {"key": "content", "type": "object", "editable": True},
            ],
            "user": [
                {"key": "first_name", "type": "string", "editable": True},
                {"key": "last_name", "type": "string", "editable": True},
                {"key": "email", "type": "string", "editable": True},
            ],
        }
        self.objects = {
            ("user", "5"): {"id": 5, "first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.org"},
        }
        self.created = []
        self.updated = []

    def get_wordpress_object_fields(self, wordpress_object):
        return self.fields.get(wordpress_object, [])

    def get_wordpress_object_data(self, wordpress_object, wordpress_id):
        return dict(self.objects[(wordpress_object, str(wordpress_id))])

    def create_wordpress_object(self, wordpress_object, data):
        wordpress_id = 100 + len(self.created)
        self.created.append((wordpress_object, data))
        self.objects[(wordpress_object, str(wordpress_id))] = dict(data, id=wordpress_id)
        return wordpress_id

    def update_wordpress_object(self, wordpress_object, wordpress_id, data):
        self.updated.append((wordpress_object, str(wordpress_id), data))
        return True


@pytest.fixture
def mappings(tmp_path: Path) -> MappingStore:
    """An empty mapping store in a temp file."""
    return MappingStore(tmp_path / "mappings.json")


@pytest.fixture
def transients(tmp_path: Path) -> TransientStore:
    """An empty transient store in a temp file."""
    return TransientStore(tmp_path / "transients.json")


@pytest.fixture
def sf_client() -> FakeSalesforce:
    return FakeSalesforce()


@pytest.fixture
def wp_client() -> FakeWordPress:
    return FakeWordPress()


@pytest.fixture
def controller(mappings, transients) -> AdminFormController:
    return AdminFormController(mappings, transients, allowed_hosts=["localhost"], fallback_url=ADMIN)


@pytest.fixture
def user_fieldmap(mappings):
    """A fieldmap syncing WordPress users with Salesforce contacts."""
    return mappings.create_fieldmap({
        "label": "Users",
        "wordpress_object": "user",
        "salesforce_object": "Contact",
        "fields": [
            {"wordpress_field": "first_name", "salesforce_field": "FirstName", "direction": "sync"},
            {"wordpress_field": "last_name", "salesforce_field": "LastName", "direction": "sync"},
            {"wordpress_field": "email", "salesforce_field": "Email", "direction": "wp_sf"},
        ],
    })
