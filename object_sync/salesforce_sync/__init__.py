"""
Salesforce ⇄ WordPress Sync Module

Salesforce access, mapping storage and on-demand push/pull.
"""

from .salesforce_client import SalesforceClient
from .mapping_store import MappingStore
from .object_fields import FieldLookup, get_salesforce_object_description, get_wp_sf_object_fields
from .manual_sync import push_to_salesforce, pull_from_salesforce, refresh_mapped_data

__all__ = [
    'SalesforceClient',
    'MappingStore',
    'FieldLookup',
    'get_salesforce_object_description',
    'get_wp_sf_object_fields',
    'push_to_salesforce',
    'pull_from_salesforce',
    'refresh_mapped_data',
]
