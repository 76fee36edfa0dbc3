"""
Object Field Lookups

Field lists for the fieldmap form: what a Salesforce object describes,
what a WordPress object exposes, and both together.
"""

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def get_salesforce_object_description(sf_client, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Describe a Salesforce object for the fieldmap form.

    Args:
        sf_client: Connected SalesforceClient
        data: Must contain salesforce_object. May contain include (a list of
            'fields' and/or 'recordTypeInfos', default fields only) and
            field_type to keep only fields of that type.

    Returns:
        Dictionary with 'fields' and/or 'recordTypeInfos' ({id: name})
    """
    description: Dict[str, Any] = {}
    object_name = data.get("salesforce_object")
    if not object_name:
        return description

    describe = sf_client.object_describe(object_name)
    include = _as_list(data.get("include"))

    if "fields" in include or not include:
        field_type = data.get("field_type") or ""
        description["fields"] = [
            f for f in describe.get("fields", [])
            if not field_type or f.get("type") == field_type
        ]

    if "recordTypeInfos" in include:
        record_types = describe.get("recordTypeInfos") or []
        # Every object has the master record type; only list real choices
        if len(record_types) > 1:
            description["recordTypeInfos"] = {rt["recordTypeId"]: rt["name"] for rt in record_types}

    return description


def get_salesforce_object_fields(sf_client, salesforce_object: str, field_type: str = "") -> List[Dict[str, Any]]:
    if not salesforce_object:
        return []
    description = get_salesforce_object_description(
        sf_client,
        {"salesforce_object": salesforce_object, "field_type": field_type, "include": ["fields"]},
    )
    return description.get("fields", [])


def get_wp_sf_object_fields(wp_client, sf_client, wordpress_object: str, salesforce_object: str) -> Dict[str, Any]:
    """WordPress and Salesforce fields side by side."""
    return {
        "wordpress": wp_client.get_wordpress_object_fields(wordpress_object) if wordpress_object else [],
        "salesforce": get_salesforce_object_fields(sf_client, salesforce_object),
    }


class FieldLookup:
    """
    Supplies the known field lists the mapping store checks fieldmap rows against.

    Either client may be None, in which case that side is not checked.
    """

    def __init__(self, wp_client=None, sf_client=None):
        self.wp_client = wp_client
        self.sf_client = sf_client

    def wordpress_fields(self, wordpress_object: str) -> Optional[List[Dict[str, Any]]]:
        if self.wp_client is None:
            return None
        return self.wp_client.get_wordpress_object_fields(wordpress_object)

    def salesforce_fields(self, salesforce_object: str) -> Optional[List[Dict[str, Any]]]:
        if self.sf_client is None:
            return None
        return get_salesforce_object_fields(self.sf_client, salesforce_object)
