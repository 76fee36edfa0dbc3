"""
Admin notices shown above the settings screens.
"""

from typing import Any, Dict, List, Mapping

NOTICES = {
    "permission": {
        "message": "Your account does not have permission to edit the Salesforce sync settings.",
        "type": "error",
        "dismissible": False,
    },
    "fieldmap": {
        "message": "Errors kept this fieldmap from being saved.",
        "type": "error",
        "dismissible": True,
    },
    "object_map": {
        "message": "Errors kept this object map from being saved.",
        "type": "error",
        "dismissible": True,
    },
}


def build_notices(query_args: Mapping[str, Any], can_configure: bool) -> List[Dict[str, Any]]:
    """Return the notices whose condition holds for this request."""
    conditions = {
        "permission": not can_configure,
        "fieldmap": "transient" in query_args,
        "object_map": "map_transient" in query_args,
    }
    return [
        dict(NOTICES[key], key=key)
        for key, condition in conditions.items()
        if condition
    ]
