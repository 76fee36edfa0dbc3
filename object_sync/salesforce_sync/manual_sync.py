"""
Manual Sync

Push a single WordPress record to Salesforce or pull a single Salesforce
record into WordPress on demand, using the matching fieldmap and keeping
the object map up to date.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from .mapping_store import FAILED_SALESFORCE_ID_PREFIX, STATUS_ERROR, STATUS_SUCCESS

logger = logging.getLogger(__name__)

PUSH_DIRECTIONS = ("wp_sf", "sync")
PULL_DIRECTIONS = ("sf_wp", "sync")


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _plain_value(value: Any) -> Any:
    # The REST API wraps some fields as {"raw": ..., "rendered": ...}
    if isinstance(value, dict):
        if "raw" in value:
            return value["raw"]
        if "rendered" in value:
            return value["rendered"]
    return value


def map_fields(fieldmap: Dict[str, Any], source: Dict[str, Any], directions: Iterable[str],
               from_key: str, to_key: str) -> Dict[str, Any]:
    """
    Copy values between objects following a fieldmap's field rows.

    Args:
        fieldmap: Fieldmap with a 'fields' list
        source: Record to read values from
        directions: Row directions that apply to this sync
        from_key: Row key naming the source field
        to_key: Row key naming the target field

    Returns:
        Dictionary of target field -> value
    """
    params = {}
    for row in fieldmap.get("fields") or []:
        if row.get("direction", "sync") not in directions:
            continue
        source_field = row.get(from_key)
        if source_field in source:
            params[row[to_key]] = _plain_value(source[source_field])
    return params


def is_failed_salesforce_id(salesforce_id: Optional[str]) -> bool:
    return str(salesforce_id or "").startswith(FAILED_SALESFORCE_ID_PREFIX)


def push_to_salesforce(wordpress_object: str, wordpress_id: Any, wp_client, sf_client, mappings) -> dict:
    """
    Push one WordPress record to Salesforce.

    Creates the Salesforce record when the WordPress record has no object
    map yet (or only a failed one), otherwise updates the linked record.
    A failed create leaves a tmp_sf_ placeholder object map so the record
    shows up under mapping errors.

    Returns:
        Dictionary with the push result
    """
    fieldmaps = mappings.get_fieldmaps(conditions={"wordpress_object": wordpress_object})
    if not fieldmaps:
        logger.warning(f"No fieldmap for WordPress object {wordpress_object}")
        return {"success": False, "error": f"No fieldmap for WordPress object {wordpress_object}"}
    fieldmap = fieldmaps[0]
    salesforce_object = fieldmap["salesforce_object"]
    object_map = mappings.load_by_wordpress(wordpress_object, wordpress_id)

    try:
        data = wp_client.get_wordpress_object_data(wordpress_object, wordpress_id)
        params = map_fields(fieldmap, data, PUSH_DIRECTIONS, "wordpress_field", "salesforce_field")
        if not params:
            return {"success": False, "error": f"Fieldmap {fieldmap['id']} has no fields to push"}

        if object_map and not is_failed_salesforce_id(object_map.get("salesforce_id")):
            salesforce_id = object_map["salesforce_id"]
            if not sf_client.update_record(salesforce_object, salesforce_id, params):
                raise ValueError(f"Salesforce did not accept the update to {salesforce_id}")
            action = "updated"
        else:
            salesforce_id = sf_client.create_record(salesforce_object, params)
            if not salesforce_id:
                raise ValueError(f"Salesforce did not create a {salesforce_object}")
            action = "created"

        sync_fields = {
            "salesforce_id": salesforce_id,
            "last_sync": _now(),
            "last_sync_action": "push",
            "last_sync_status": STATUS_SUCCESS,
            "last_sync_message": f"Mapping object {action} via manual push",
        }
        if object_map:
            mappings.update_object_map(sync_fields, object_map["id"])
        else:
            mappings.create_object_map(dict(sync_fields, wordpress_id=str(wordpress_id), wordpress_object=wordpress_object))

        logger.info(f"✓ Pushed WordPress {wordpress_object} {wordpress_id} → {salesforce_object} {salesforce_id} ({action})")
        return {"success": True, "action": action, "salesforce_id": salesforce_id, "salesforce_object": salesforce_object}

    except Exception as e:
        logger.error(f"Error pushing WordPress {wordpress_object} {wordpress_id}: {e}", exc_info=True)
        failure = {
            "last_sync": _now(),
            "last_sync_action": "push",
            "last_sync_status": STATUS_ERROR,
            "last_sync_message": str(e),
        }
        if object_map:
            mappings.update_object_map(failure, object_map["id"])
        else:
            mappings.create_object_map(dict(
                failure,
                wordpress_id=str(wordpress_id),
                wordpress_object=wordpress_object,
                salesforce_id=f"{FAILED_SALESFORCE_ID_PREFIX}{uuid.uuid4().hex[:13]}",
            ))
        return {"success": False, "error": str(e)}


def pull_from_salesforce(salesforce_id: str, wordpress_object: str, wp_client, sf_client, mappings) -> dict:
    """
    Pull one Salesforce record into WordPress.

    The wordpress_object narrows which fieldmap applies when several map
    the same Salesforce object.

    Returns:
        Dictionary with the pull result
    """
    try:
        salesforce_object = sf_client.get_sobject_type(salesforce_id)
        if not salesforce_object:
            return {"success": False, "error": f"Unknown Salesforce ID {salesforce_id}"}

        conditions = {"salesforce_object": salesforce_object}
        if wordpress_object:
            conditions["wordpress_object"] = wordpress_object
        fieldmaps = mappings.get_fieldmaps(conditions=conditions)
        if not fieldmaps:
            return {"success": False, "error": f"No fieldmap for Salesforce object {salesforce_object}"}
        fieldmap = fieldmaps[0]
        wordpress_object = fieldmap["wordpress_object"]

        record = sf_client.get_record(salesforce_object, salesforce_id)
        params = map_fields(fieldmap, record, PULL_DIRECTIONS, "salesforce_field", "wordpress_field")
        if not params:
            return {"success": False, "error": f"Fieldmap {fieldmap['id']} has no fields to pull"}

        object_map = mappings.load_by_salesforce(salesforce_id)
        if object_map:
            wordpress_id = object_map["wordpress_id"]
            wp_client.update_wordpress_object(wordpress_object, wordpress_id, params)
            action = "updated"
        else:
            wordpress_id = wp_client.create_wordpress_object(wordpress_object, params)
            if not wordpress_id:
                return {"success": False, "error": f"WordPress did not create a {wordpress_object}"}
            action = "created"

        sync_fields = {
            "last_sync": _now(),
            "last_sync_action": "pull",
            "last_sync_status": STATUS_SUCCESS,
            "last_sync_message": f"Mapping object {action} via manual pull",
        }
        if object_map:
            mappings.update_object_map(sync_fields, object_map["id"])
        else:
            mappings.create_object_map(dict(
                sync_fields,
                wordpress_id=str(wordpress_id),
                wordpress_object=wordpress_object,
                salesforce_id=salesforce_id,
            ))

        logger.info(f"✓ Pulled {salesforce_object} {salesforce_id} → WordPress {wordpress_object} {wordpress_id} ({action})")
        return {"success": True, "action": action, "wordpress_id": str(wordpress_id), "wordpress_object": wordpress_object}

    except Exception as e:
        logger.error(f"Error pulling Salesforce {salesforce_id}: {e}", exc_info=True)
        return {"success": False, "error": str(e)}


def refresh_mapped_data(mapping_id: Any, mappings) -> list:
    """Reload the object map rows for a mapping id."""
    return mappings.get_object_maps({"id": mapping_id})
