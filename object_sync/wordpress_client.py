"""
WordPress REST API Client

Reads object schemas and records from the WordPress site and writes
pulled Salesforce data back, authenticating with an application password.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from config import WORDPRESS_APP_PASSWORD, WORDPRESS_URL, WORDPRESS_USERNAME

logger = logging.getLogger(__name__)

# WordPress object names whose REST route differs from the name
REST_BASES = {
    "post": "posts",
    "page": "pages",
    "user": "users",
    "attachment": "media",
    "category": "categories",
    "post_tag": "tags",
    "comment": "comments",
}


class WordPressClient:
    """Thin wrapper over /wp-json/wp/v2."""

    def __init__(self, base_url: str = WORDPRESS_URL, username: str = WORDPRESS_USERNAME,
                 app_password: str = WORDPRESS_APP_PASSWORD, timeout: int = 30):
        self.base_url = base_url.rstrip("/")
        # Application passwords are shown with spaces, which are not part of the secret
        self.auth = (username, app_password.replace(" ", "")) if username and app_password else None
        self.timeout = timeout

    def _url(self, wordpress_object: str, wordpress_id: Any = None) -> str:
        base = REST_BASES.get(wordpress_object, wordpress_object)
        url = f"{self.base_url}/wp-json/wp/v2/{base}"
        if wordpress_id not in (None, ""):
            url += f"/{wordpress_id}"
        return url

    def get_wordpress_object_fields(self, wordpress_object: str) -> List[Dict[str, Any]]:
        """
        List the fields a WordPress object exposes, read from its REST schema.

        Args:
            wordpress_object: Object name, e.g. 'post' or 'user'

        Returns:
            List of {"key", "type", "editable"} dictionaries
        """
        if not wordpress_object:
            return []
        resp = requests.options(self._url(wordpress_object), auth=self.auth, timeout=self.timeout)
        resp.raise_for_status()
        properties = resp.json().get("schema", {}).get("properties", {})
        fields = []
        for key, prop in properties.items():
            field_type = prop.get("type")
            if isinstance(field_type, list):
                field_type = next((t for t in field_type if t != "null"), field_type[0] if field_type else None)
            fields.append({
                "key": key,
                "type": field_type,
                "editable": not prop.get("readonly", False),
            })
        logger.debug(f"WordPress object {wordpress_object} has {len(fields)} fields")
        return fields

    def get_wordpress_object_data(self, wordpress_object: str, wordpress_id: Any) -> Dict[str, Any]:
        resp = requests.get(
            self._url(wordpress_object, wordpress_id),
            params={"context": "edit"},
            auth=self.auth,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def create_wordpress_object(self, wordpress_object: str, data: Dict[str, Any]) -> Optional[Any]:
        """Create a record and return its id."""
        resp = requests.post(self._url(wordpress_object), json=data, auth=self.auth, timeout=self.timeout)
        resp.raise_for_status()
        wordpress_id = resp.json().get("id")
        logger.info(f"Created WordPress {wordpress_object} {wordpress_id}")
        return wordpress_id

    def update_wordpress_object(self, wordpress_object: str, wordpress_id: Any, data: Dict[str, Any]) -> bool:
        resp = requests.post(self._url(wordpress_object, wordpress_id), json=data, auth=self.auth, timeout=self.timeout)
        resp.raise_for_status()
        logger.info(f"Updated WordPress {wordpress_object} {wordpress_id} (Status {resp.status_code})")
        return True
