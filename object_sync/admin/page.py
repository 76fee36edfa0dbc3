"""
Admin Page

Builds the data behind the plugin's settings screen: which tabs to show,
setup warnings, and the values to fill the fieldmap and mapping-error
forms with. A form that failed to save is refilled from its transient.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from object_sync.utils import add_query_arg, sanitize_key
from object_sync.salesforce_sync.mapping_store import build_field_rows
from .notices import build_notices

logger = logging.getLogger(__name__)

DEFAULT_TABS = {
    "settings": "Settings",
    "authorize": "Authorize",
    "fieldmaps": "Fieldmaps",
    "schedule": "Scheduling",
    "log_settings": "Log Settings",
}

FIELDMAP_FORM_FIELDS = [
    "label",
    "salesforce_object",
    "salesforce_record_types_allowed",
    "salesforce_record_type_default",
    "wordpress_object",
    "pull_trigger_field",
    "fields",
    "sync_triggers",
    "push_async",
    "push_drafts",
    "weight",
]

OBJECT_MAP_FORM_FIELDS = ["salesforce_id", "wordpress_id"]

# Live check run on the Authorize tab once connected
STATUS_QUERY = "SELECT Name, Id from Contact LIMIT 100"
STATUS_OBJECT = "Contact"


class AdminPage:
    """
    Assembles the admin screen for one request.

    Args:
        mappings: Mapping store
        transients: Transient store holding failed submissions
        sf_client: SalesforceClient, connected or not; None if it could not be built
        consumer_key: OAuth consumer key
        consumer_secret: OAuth consumer secret
        schedules: Push/pull schedule settings; all empty means never saved
        admin_url: Base URL of the admin screen
    """

    def __init__(self, mappings, transients, sf_client=None, consumer_key: str = "",
                 consumer_secret: str = "", schedules: Optional[Dict[str, str]] = None,
                 admin_url: str = "/admin"):
        self.mappings = mappings
        self.transients = transients
        self.sf_client = sf_client
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.schedules = schedules or {}
        self.admin_url = admin_url

    @property
    def is_authorized(self) -> bool:
        return bool(self.sf_client is not None and self.sf_client.is_authorized)

    def tab_url(self, tab: str, **args) -> str:
        url = add_query_arg(self.admin_url, "tab", tab)
        for key, value in args.items():
            url = add_query_arg(url, key, value)
        return url

    def tabs(self, active: str) -> List[Dict[str, Any]]:
        """Tabs to render; only Settings until OAuth credentials are saved."""
        tabs = dict(DEFAULT_TABS)
        if self.mappings.get_failed_object_maps():
            tabs["mapping_errors"] = "Mapping Errors"
        has_credentials = bool(self.consumer_key and self.consumer_secret)
        return [
            {"key": key, "caption": caption, "url": self.tab_url(key), "active": key == active}
            for key, caption in tabs.items()
            if key == "settings" or has_credentials
        ]

    def warnings(self) -> List[Dict[str, str]]:
        warnings = []
        if not self.is_authorized:
            warnings.append({
                "message": "Salesforce needs to be authorized to connect to this website. Use the Authorize tab to connect.",
                "url": self.tab_url("authorize"),
            })
        if not self.mappings.get_fieldmaps():
            warnings.append({
                "message": "No fieldmaps exist yet. Use the Fieldmaps tab to map WordPress and Salesforce objects to each other.",
                "url": self.tab_url("fieldmaps"),
            })
        if not any(self.schedules.values()):
            warnings.append({
                "message": "Because the plugin schedule has not been saved, the plugin cannot run automatic operations. Use the Scheduling tab to create schedules to run.",
                "url": self.tab_url("schedule"),
            })
        return warnings

    def _posted(self, query_args: Mapping[str, Any], param: str) -> Optional[Dict[str, Any]]:
        token = sanitize_key(query_args.get(param))
        if not token:
            return None
        posted = self.transients.get(token)
        if isinstance(posted, dict):
            logger.info(f"Refilling form from transient {token}")
            return posted
        return None

    def fieldmap_form(self, query_args: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Values for the fieldmap add/edit/clone/delete form.

        A submission parked under the transient query argument wins over
        the stored fieldmap.
        """
        method = sanitize_key(query_args.get("method"))
        record_id = sanitize_key(query_args.get("id"))
        form = {
            "method": method,
            "id": record_id,
            "redirect_url_error": self.tab_url("fieldmaps", method=method),
            "redirect_url_success": self.tab_url("fieldmaps"),
        }

        fieldmap = self._posted(query_args, "transient")
        if fieldmap is not None:
            fieldmap = dict(fieldmap, fields=build_field_rows(fieldmap))
        elif method in ("edit", "clone", "delete"):
            fieldmap = self.mappings.get_fieldmaps(record_id)

        if fieldmap:
            form["values"] = {key: fieldmap.get(key) for key in FIELDMAP_FORM_FIELDS}
            if method == "edit" and fieldmap.get("id"):
                form["id"] = str(fieldmap["id"])
        else:
            form["values"] = {}
        return form

    def mapping_error_form(self, query_args: Mapping[str, Any]) -> Dict[str, Any]:
        method = sanitize_key(query_args.get("method"))
        record_id = sanitize_key(query_args.get("id"))
        form = {
            "method": method,
            "id": record_id,
            "redirect_url_error": self.tab_url("mapping_errors", method=method),
            "redirect_url_success": self.tab_url("mapping_errors"),
        }
        map_row = self._posted(query_args, "map_transient")
        if map_row is None and method in ("edit", "delete"):
            map_row = self.mappings.get_failed_object_map(record_id)
        form["values"] = {key: map_row.get(key) for key in OBJECT_MAP_FORM_FIELDS} if map_row else {}
        return form

    def connection_status(self) -> Dict[str, Any]:
        """
        Show that the connection works: available API versions and a small contact query.

        Returns:
            Dictionary with success, api_version, api_versions, record_count
            and object_type, or success False and the error
        """
        try:
            versions = self.sf_client.get_api_versions()
            records = self.sf_client.query(STATUS_QUERY)
        except Exception as e:
            logger.error(f"Salesforce status check failed: {e}", exc_info=True)
            return {"success": False, "error": str(e)}
        logger.info(f"✓ Salesforce returned {len(records)} {STATUS_OBJECT} records")
        return {
            "success": True,
            "api_version": self.sf_client.api_version,
            "api_versions": versions,
            "record_count": len(records),
            "object_type": STATUS_OBJECT,
        }

    def tab_content(self, tab: str, query_args: Mapping[str, Any]) -> Dict[str, Any]:
        if tab == "authorize":
            if self.is_authorized:
                return {
                    "authorized": True,
                    "instance_url": self.sf_client.instance_url,
                    "status": self.connection_status(),
                }
            if self.sf_client is not None and self.consumer_key and self.consumer_secret:
                return {"authorized": False, "authorize_url": self.sf_client.get_authorization_code()}
            return {
                "authorized": False,
                "error": "Salesforce needs to be authorized to connect to this website but the credentials are missing. Use the Settings tab to add them.",
                "url": self.tab_url("settings"),
            }
        if tab == "fieldmaps":
            if query_args.get("method"):
                return {"form": self.fieldmap_form(query_args)}
            return {"fieldmaps": self.mappings.get_fieldmaps()}
        if tab == "mapping_errors":
            if query_args.get("method"):
                return {"form": self.mapping_error_form(query_args)}
            return {"mapping_errors": self.mappings.get_failed_object_maps()}
        if tab == "schedule":
            return {"schedules": self.schedules}
        return {"settings": {"consumer_key_saved": bool(self.consumer_key), "authorized": self.is_authorized}}

    def build(self, query_args: Mapping[str, Any], can_configure: bool = True) -> Dict[str, Any]:
        """Everything the admin screen needs for this request."""
        notices = build_notices(query_args, can_configure)
        if not can_configure:
            return {"notices": notices}
        tab = sanitize_key(query_args.get("tab")) or "settings"
        return {
            "tab": tab,
            "tabs": self.tabs(tab),
            "notices": notices,
            "warnings": self.warnings(),
            "content": self.tab_content(tab, query_args),
        }
