"""
Salesforce API Client

Handles authentication, object metadata and record reads/writes.
"""

import os
import logging
from typing import Dict, List, Optional, Any
from urllib.parse import urlencode

import requests
from simple_salesforce import Salesforce

from config import (
    SALESFORCE_API_VERSION,
    SALESFORCE_AUTHORIZE_URL_PATH,
    SALESFORCE_CALLBACK_URL,
    SALESFORCE_CONSUMER_KEY,
    SALESFORCE_CONSUMER_SECRET,
    SALESFORCE_LOGIN_URL,
    SALESFORCE_TOKEN_URL_PATH,
)

logger = logging.getLogger(__name__)


class SalesforceClient:
    """
    Wrapper around simple-salesforce for the admin screens.

    Supports access token, refresh token and username/password
    authentication. Pass connect=False to build an unauthorized client that
    can still hand out the OAuth authorize URL.
    """

    def __init__(self, connect: bool = True):
        self.username = os.getenv("SALESFORCE_USERNAME")
        self.password = os.getenv("SALESFORCE_PASSWORD")
        self.security_token = os.getenv("SALESFORCE_SECURITY_TOKEN")
        self.domain = os.getenv("SALESFORCE_DOMAIN", "login")  # 'login' or 'test'

        self.consumer_key = SALESFORCE_CONSUMER_KEY
        self.consumer_secret = SALESFORCE_CONSUMER_SECRET
        self.callback_url = SALESFORCE_CALLBACK_URL
        self.login_url = SALESFORCE_LOGIN_URL.rstrip("/")
        self.api_version = SALESFORCE_API_VERSION
        self.access_token = os.getenv("SALESFORCE_ACCESS_TOKEN")
        self.instance_url = os.getenv("SALESFORCE_INSTANCE_URL")
        self.refresh_token = os.getenv("SALESFORCE_REFRESH_TOKEN")

        self.sf = None
        self._key_prefixes: Optional[Dict[str, str]] = None
        if connect:
            self._connect()

    @property
    def is_authorized(self) -> bool:
        return self.sf is not None

    def _connect(self):
        """Establish connection to Salesforce."""
        try:
            # Option 1: OAuth with access token
            if self.access_token:
                if self.instance_url:
                    logger.info("Connecting to Salesforce with OAuth access token...")
                    self.sf = Salesforce(instance_url=self.instance_url, session_id=self.access_token, version=self.api_version)
                    logger.info("✓ Successfully connected to Salesforce via OAuth")
                    return
                else:
                    logger.warning("SALESFORCE_ACCESS_TOKEN provided but SALESFORCE_INSTANCE_URL missing")

            # Option 2: OAuth with refresh token
            if self.consumer_key and self.consumer_secret and self.refresh_token:
                logger.info("Attempting OAuth connection with refresh token...")
                try:
                    self.refresh_access_token()
                    return
                except requests.RequestException as e:
                    logger.warning(f"OAuth refresh token failed: {e}. Trying other methods...")

            # Option 3: Username/password
            if self.username and self.password:
                logger.info("Connecting to Salesforce with username/password...")
                self.sf = Salesforce(
                    username=self.username,
                    password=self.password,
                    security_token=self.security_token,
                    domain=self.domain,
                    version=self.api_version,
                )
                logger.info("✓ Successfully connected to Salesforce")
                return

            raise ValueError(
                "Missing Salesforce credentials. Provide one of:\n"
                "- SALESFORCE_ACCESS_TOKEN + SALESFORCE_INSTANCE_URL\n"
                "- SALESFORCE_CONSUMER_KEY + SALESFORCE_CONSUMER_SECRET + SALESFORCE_REFRESH_TOKEN\n"
                "- SALESFORCE_USERNAME + SALESFORCE_PASSWORD + SALESFORCE_SECURITY_TOKEN\n"
                "or authorize through the admin Authorize tab."
            )

        except Exception as e:
            logger.error(f"Failed to connect to Salesforce: {e}")
            raise

    def _open_session(self, token_response: Dict[str, Any]) -> Dict[str, Any]:
        access_token = token_response.get("access_token")
        instance_url = token_response.get("instance_url")
        if not access_token or not instance_url:
            raise ValueError(f"Token response missing access_token or instance_url: {sorted(token_response)}")
        self.access_token = access_token
        self.instance_url = instance_url
        if token_response.get("refresh_token"):
            self.refresh_token = token_response["refresh_token"]
        self.sf = Salesforce(instance_url=instance_url, session_id=access_token, version=self.api_version)
        self._key_prefixes = None
        return token_response

    def get_authorization_code(self) -> str:
        """URL the admin follows to grant this app access to their org."""
        params = {
            "response_type": "code",
            "client_id": self.consumer_key,
            "redirect_uri": self.callback_url,
        }
        return f"{self.login_url}{SALESFORCE_AUTHORIZE_URL_PATH}?{urlencode(params)}"

    def request_token(self, code: str) -> Dict[str, Any]:
        """
        Exchange an OAuth authorization code for tokens and connect.

        Args:
            code: The code Salesforce appended to the callback URL

        Returns:
            The token response
        """
        token_url = f"{self.login_url}{SALESFORCE_TOKEN_URL_PATH}"
        token_data = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.consumer_key,
            "client_secret": self.consumer_secret,
            "redirect_uri": self.callback_url,
        }
        resp = requests.post(token_url, data=token_data)
        resp.raise_for_status()
        logger.info("✓ Received Salesforce tokens from authorization code")
        return self._open_session(resp.json())

    def refresh_access_token(self) -> Dict[str, Any]:
        token_url = f"{self.login_url}{SALESFORCE_TOKEN_URL_PATH}"
        token_data = {
            "grant_type": "refresh_token",
            "client_id": self.consumer_key,
            "client_secret": self.consumer_secret,
            "refresh_token": self.refresh_token,
        }
        resp = requests.post(token_url, data=token_data)
        resp.raise_for_status()
        result = self._open_session(resp.json())
        logger.info("✓ Successfully connected to Salesforce via OAuth refresh token")
        return result

    def logout(self):
        """Forget the current session. Nothing is revoked inside Salesforce."""
        self.sf = None
        self.access_token = None
        self.instance_url = None
        self.refresh_token = None
        self._key_prefixes = None
        logger.info("Dropped Salesforce session")

    def get_api_versions(self) -> List[str]:
        """
        List the API versions the instance offers.

        This is not an authenticated request, so it does not touch the token.
        """
        base_url = (self.instance_url or self.login_url).rstrip("/")
        resp = requests.get(f"{base_url}/services/data/", timeout=30)
        resp.raise_for_status()
        return [v["version"] for v in resp.json() if v.get("version")]

    def query(self, soql: str) -> List[Dict[str, Any]]:
        """
        Execute a SOQL query and return results.

        Args:
            soql: SOQL query string

        Returns:
            List of record dictionaries
        """
        try:
            result = self.sf.query(soql)
            records = result.get('records', [])
            for record in records:
                record.pop('attributes', None)
            return records
        except Exception as e:
            logger.error(f"Salesforce query failed: {e}\nQuery: {soql}")
            raise

    def object_describe(self, object_name: str) -> Dict[str, Any]:
        """
        Describe a Salesforce object.

        Returns:
            The describe result, including 'fields' and 'recordTypeInfos'
        """
        logger.debug(f"Describing Salesforce object {object_name}")
        return getattr(self.sf, object_name).describe()

    def get_sobject_type(self, salesforce_id: str) -> Optional[str]:
        """
        Work out which object a record ID belongs to from its 3-character key prefix.
        """
        if not salesforce_id or len(salesforce_id) < 3:
            return None
        if self._key_prefixes is None:
            sobjects = self.sf.describe().get("sobjects", [])
            self._key_prefixes = {s["keyPrefix"]: s["name"] for s in sobjects if s.get("keyPrefix")}
        return self._key_prefixes.get(salesforce_id[:3])

    def get_record(self, object_name: str, salesforce_id: str) -> Dict[str, Any]:
        record = getattr(self.sf, object_name).get(salesforce_id)
        record.pop("attributes", None)
        return record

    def create_record(self, object_name: str, data: Dict[str, Any]) -> Optional[str]:
        """
        Create a record.

        Returns:
            The new Salesforce ID, or None if Salesforce reported failure
        """
        result = getattr(self.sf, object_name).create(data)
        if result.get("success"):
            logger.info(f"✓ Created {object_name} {result.get('id')}")
            return result.get("id")
        logger.warning(f"Create {object_name} returned errors: {result.get('errors')}")
        return None

    def update_record(self, object_name: str, salesforce_id: str, data: Dict[str, Any]) -> bool:
        # simple-salesforce returns the HTTP status code and raises on failure
        status = getattr(self.sf, object_name).update(salesforce_id, data)
        if status == 204:
            logger.info(f"✓ Updated {object_name} {salesforce_id}")
            return True
        logger.warning(f"Update returned unexpected status for {object_name} {salesforce_id}: {status}")
        return False
