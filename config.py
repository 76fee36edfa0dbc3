"""
Runtime configuration.

All values come from environment variables so the same build can run
against sandbox and production orgs.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).parent

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Storage for fieldmaps, object maps and pending form submissions
MAPPINGS_FILE = Path(os.getenv("OBJECT_SYNC_MAPPINGS_FILE", BASE_DIR / "mappings.json"))
TRANSIENTS_FILE = Path(os.getenv("OBJECT_SYNC_TRANSIENTS_FILE", BASE_DIR / "transients.json"))

# Admin access: requests must send X-Admin-Token when this is set
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "")

# Redirects outside these hosts fall back to ADMIN_URL
ALLOWED_REDIRECT_HOSTS = [
    h.strip() for h in os.getenv("ALLOWED_REDIRECT_HOSTS", "localhost").split(",") if h.strip()
]
ADMIN_URL = os.getenv("ADMIN_URL", "/admin")

# Salesforce OAuth app
SALESFORCE_CONSUMER_KEY = os.getenv("SALESFORCE_CONSUMER_KEY", "")
SALESFORCE_CONSUMER_SECRET = os.getenv("SALESFORCE_CONSUMER_SECRET", "")
SALESFORCE_CALLBACK_URL = os.getenv("SALESFORCE_CALLBACK_URL", "")
SALESFORCE_LOGIN_URL = os.getenv("SALESFORCE_LOGIN_URL", "https://login.salesforce.com")
SALESFORCE_AUTHORIZE_URL_PATH = os.getenv("SALESFORCE_AUTHORIZE_URL_PATH", "/services/oauth2/authorize")
SALESFORCE_TOKEN_URL_PATH = os.getenv("SALESFORCE_TOKEN_URL_PATH", "/services/oauth2/token")
SALESFORCE_API_VERSION = os.getenv("SALESFORCE_API_VERSION", "40.0")

# WordPress REST API (application password auth)
WORDPRESS_URL = os.getenv("WORDPRESS_URL", "http://localhost")
WORDPRESS_USERNAME = os.getenv("WORDPRESS_USERNAME", "")
WORDPRESS_APP_PASSWORD = os.getenv("WORDPRESS_APP_PASSWORD", "")

# Push/pull schedules; empty means never saved
PUSH_SCHEDULE_NUMBER = os.getenv("SALESFORCE_PUSH_SCHEDULE_NUMBER", "")
PUSH_SCHEDULE_UNIT = os.getenv("SALESFORCE_PUSH_SCHEDULE_UNIT", "")
PULL_SCHEDULE_NUMBER = os.getenv("SALESFORCE_PULL_SCHEDULE_NUMBER", "")
PULL_SCHEDULE_UNIT = os.getenv("SALESFORCE_PULL_SCHEDULE_UNIT", "")
