"""
WordPress ⇄ Salesforce Object Sync - admin layer

Admin form handling, mapping storage and manual sync for the object sync
service.
"""

from .errors import ObjectSyncError, PersistenceFailure, ValidationError

__all__ = [
    'ObjectSyncError',
    'PersistenceFailure',
    'ValidationError',
]
