"""
Mapping Storage

Stores fieldmaps (which WordPress object type syncs with which Salesforce
object, field by field) and object maps (which WordPress record is linked
to which Salesforce record) in a JSON file.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

STATUS_SUCCESS = 1
STATUS_ERROR = 0

# Placeholder Salesforce IDs written when a push could not create the record
FAILED_SALESFORCE_ID_PREFIX = "tmp_sf_"

FIELDMAP_KEYS = [
    "label",
    "salesforce_object",
    "wordpress_object",
    "salesforce_record_types_allowed",
    "salesforce_record_type_default",
    "pull_trigger_field",
    "sync_triggers",
    "push_async",
    "push_drafts",
    "weight",
]

OBJECT_MAP_KEYS = [
    "wordpress_id",
    "wordpress_object",
    "salesforce_id",
    "last_sync",
    "last_sync_action",
    "last_sync_status",
    "last_sync_message",
]

DIRECTIONS = ("sf_wp", "wp_sf", "sync")


def _as_list(value: Any) -> List[Any]:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _empty_store() -> Dict[str, Any]:
    return {"fieldmaps": {}, "object_maps": {}, "next_id": {"fieldmaps": 1, "object_maps": 1}}


def _field_names(fields: Optional[List[Dict[str, Any]]], key: str) -> Optional[set]:
    if not fields:
        return None
    return {str(f.get(key)) for f in fields if f.get(key)}


def build_field_rows(
    data: Dict[str, Any],
    wordpress_fields: Optional[List[Dict[str, Any]]] = None,
    salesforce_fields: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, Any]]:
    """
    Turn the parallel field columns posted by the fieldmap form into rows.

    The form posts wordpress_field, salesforce_field and direction as
    repeated keys, and is_key / is_prematch as the row indexes that are
    checked. Rows naming a field the object does not have are dropped when
    the object's field list is known.

    Args:
        data: Fieldmap submission data
        wordpress_fields: Fields of the WordPress object ({"key": ...})
        salesforce_fields: Fields of the Salesforce object ({"name": ...})

    Returns:
        List of field row dictionaries
    """
    if isinstance(data.get("fields"), list) and data["fields"] and isinstance(data["fields"][0], dict):
        return [dict(row) for row in data["fields"]]

    wp_names = _field_names(wordpress_fields, "key")
    sf_names = _field_names(salesforce_fields, "name")
    wp_columns = _as_list(data.get("wordpress_field"))
    sf_columns = _as_list(data.get("salesforce_field"))
    directions = _as_list(data.get("direction"))
    keys = {str(i) for i in _as_list(data.get("is_key"))}
    prematches = {str(i) for i in _as_list(data.get("is_prematch"))}

    rows = []
    for index, (wp_field, sf_field) in enumerate(zip(wp_columns, sf_columns)):
        if not wp_field or not sf_field:
            continue
        if wp_names is not None and wp_field not in wp_names:
            logger.warning(f"Dropping field row {index}: WordPress field {wp_field} not found")
            continue
        if sf_names is not None and sf_field not in sf_names:
            logger.warning(f"Dropping field row {index}: Salesforce field {sf_field} not found")
            continue
        direction = directions[index] if index < len(directions) else "sync"
        if direction not in DIRECTIONS:
            direction = "sync"
        rows.append({
            "wordpress_field": wp_field,
            "salesforce_field": sf_field,
            "direction": direction,
            "is_key": str(index) in keys,
            "is_prematch": str(index) in prematches,
        })
    return rows


class MappingStore:
    """
    Fieldmap and object map storage backed by a JSON file.

    Writers return the saved record (truthy) or False, never raise, so
    callers can treat a falsy result as "the database didn't save".
    A file that exists but cannot be parsed is never overwritten.
    """

    status_success = STATUS_SUCCESS
    status_error = STATUS_ERROR

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Optional[Dict[str, Any]]:
        """
        Load all records from file.

        Returns:
            The store contents, or None when the file exists but cannot be read
        """
        if not self.path.exists():
            logger.info(f"Mapping file {self.path} does not exist - returning empty store")
            return _empty_store()
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading mappings from {self.path}: {e}", exc_info=True)
            return None
        data.setdefault("fieldmaps", {})
        data.setdefault("object_maps", {})
        data.setdefault("next_id", {"fieldmaps": 1, "object_maps": 1})
        return data

    def _read(self) -> Dict[str, Any]:
        # Readers show an unreadable file as empty; writers must not
        data = self.load()
        return data if data is not None else _empty_store()

    def save(self, data: Dict[str, Any]) -> bool:
        """Save all records to file, replacing it in one step."""
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile("w", dir=self.path.parent, prefix=f".{self.path.name}.",
                                             suffix=".tmp", delete=False) as f:
                tmp_name = f.name
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
            return True
        except OSError as e:
            logger.error(f"Error saving mappings: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.remove(tmp_name)
            return False

    def _insert(self, table: str, record: Dict[str, Any]) -> Union[Dict[str, Any], bool]:
        data = self.load()
        if data is None:
            return False
        new_id = int(data["next_id"].get(table, 1))
        record = dict(record, id=str(new_id))
        data[table][str(new_id)] = record
        data["next_id"][table] = new_id + 1
        if not self.save(data):
            return False
        return record

    def _update(self, table: str, record_id: Any, changes: Dict[str, Any]) -> Union[Dict[str, Any], bool]:
        data = self.load()
        if data is None:
            return False
        existing = data[table].get(str(record_id))
        if existing is None:
            logger.warning(f"Cannot update {table} {record_id}: not found")
            return False
        existing.update(changes)
        existing["id"] = str(record_id)
        if not self.save(data):
            return False
        return existing

    def _delete(self, table: str, record_id: Any) -> bool:
        data = self.load()
        if data is None:
            return False
        if str(record_id) not in data[table]:
            logger.warning(f"Cannot delete {table} {record_id}: not found")
            return False
        del data[table][str(record_id)]
        return self.save(data)

    @staticmethod
    def _matches(record: Dict[str, Any], conditions: Optional[Dict[str, Any]]) -> bool:
        if not conditions:
            return True
        return all(str(record.get(k)) == str(v) for k, v in conditions.items())

    # Fieldmaps

    def get_fieldmaps(self, fieldmap_id: Any = None, conditions: Optional[Dict[str, Any]] = None):
        """
        Get one fieldmap by id, or every fieldmap matching conditions.

        Returns:
            A fieldmap dictionary (or None) when fieldmap_id is given,
            otherwise a list ordered by weight then id
        """
        fieldmaps = self._read()["fieldmaps"]
        if fieldmap_id not in (None, ""):
            return fieldmaps.get(str(fieldmap_id))
        matches = [f for f in fieldmaps.values() if self._matches(f, conditions)]
        return sorted(matches, key=lambda f: (_to_int(f.get("weight")), _to_int(f["id"])))

    def _fieldmap_record(self, data, wordpress_fields, salesforce_fields) -> Dict[str, Any]:
        record = {k: data.get(k) for k in FIELDMAP_KEYS}
        record["salesforce_record_types_allowed"] = _as_list(record["salesforce_record_types_allowed"])
        record["sync_triggers"] = _as_list(record["sync_triggers"])
        record["fields"] = build_field_rows(data, wordpress_fields, salesforce_fields)
        return record

    def create_fieldmap(self, data: Dict[str, Any], wordpress_fields=None, salesforce_fields=None):
        record = self._fieldmap_record(data, wordpress_fields, salesforce_fields)
        result = self._insert("fieldmaps", record)
        if result:
            logger.info(f"Created fieldmap {result['id']} ({record['wordpress_object']} ⇄ {record['salesforce_object']})")
        return result

    def update_fieldmap(self, data: Dict[str, Any], wordpress_fields=None, salesforce_fields=None, fieldmap_id=None):
        record = self._fieldmap_record(data, wordpress_fields, salesforce_fields)
        result = self._update("fieldmaps", fieldmap_id, record)
        if result:
            logger.info(f"Updated fieldmap {fieldmap_id}")
        return result

    def delete_fieldmap(self, fieldmap_id: Any) -> bool:
        result = self._delete("fieldmaps", fieldmap_id)
        if result:
            logger.info(f"Deleted fieldmap {fieldmap_id}")
        return result

    # Object maps

    def get_object_maps(self, conditions: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        object_maps = self._read()["object_maps"]
        return [m for m in object_maps.values() if self._matches(m, conditions)]

    def get_object_map(self, object_map_id: Any) -> Optional[Dict[str, Any]]:
        return self._read()["object_maps"].get(str(object_map_id))

    def load_by_wordpress(self, wordpress_object: str, wordpress_id: Any) -> Optional[Dict[str, Any]]:
        """Get the object map for a WordPress record, if it has one."""
        matches = self.get_object_maps({"wordpress_object": wordpress_object, "wordpress_id": wordpress_id})
        return matches[0] if matches else None

    def load_by_salesforce(self, salesforce_id: str) -> Optional[Dict[str, Any]]:
        matches = self.get_object_maps({"salesforce_id": salesforce_id})
        return matches[0] if matches else None

    def get_failed_object_maps(self) -> List[Dict[str, Any]]:
        """Object maps whose push never produced a real Salesforce record."""
        return [
            m for m in self.get_object_maps()
            if str(m.get("salesforce_id", "")).startswith(FAILED_SALESFORCE_ID_PREFIX)
        ]

    def get_failed_object_map(self, object_map_id: Any) -> Optional[Dict[str, Any]]:
        object_map = self.get_object_map(object_map_id)
        if object_map and str(object_map.get("salesforce_id", "")).startswith(FAILED_SALESFORCE_ID_PREFIX):
            return object_map
        return None

    def create_object_map(self, data: Dict[str, Any]):
        record = {k: data.get(k) for k in OBJECT_MAP_KEYS if k in data}
        record.setdefault("last_sync", datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"))
        record.setdefault("last_sync_status", self.status_success)
        result = self._insert("object_maps", record)
        if result:
            logger.info(f"Created object map {result['id']}: WordPress {record.get('wordpress_id')} → Salesforce {record.get('salesforce_id')}")
        return result

    def update_object_map(self, data: Dict[str, Any], object_map_id: Any):
        changes = {k: data[k] for k in OBJECT_MAP_KEYS if k in data}
        result = self._update("object_maps", object_map_id, changes)
        if result:
            logger.info(f"Updated object map {object_map_id}")
        return result

    def delete_object_map(self, object_map_id: Any) -> bool:
        result = self._delete("object_maps", object_map_id)
        if result:
            logger.info(f"Deleted object map {object_map_id}")
        return result
