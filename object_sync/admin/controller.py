"""
Admin Form Controller

Handles fieldmap and object map form submissions: validates them, hands
them to the mapping store and decides where to redirect. A failed
submission is parked in transient storage under a hash of its contents,
and the token is added to the error URL so the form can be filled in
again from what the user typed.
"""

import logging
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Union

from pydantic import BaseModel

from object_sync.errors import PersistenceFailure, ValidationError
from object_sync.utils import add_query_arg, payload_token, safe_redirect_url, sanitize_key
from object_sync.salesforce_sync.manual_sync import push_to_salesforce
from .submissions import TOKEN_PARAMS, EntityKind, Method, Submission, parse_submission

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    SUCCESS = "success"
    VALIDATION_FAILURE = "validation_failure"
    PERSIST_FAILURE = "persist_failure"


class RedirectDecision(BaseModel):
    url: str
    outcome: Outcome
    token: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.SUCCESS


class AdminFormController:
    """
    Routes admin form submissions to the mapping store.

    Args:
        mappings: Mapping store (create/update/delete for fieldmaps and object maps)
        transients: Transient store (set/get/delete)
        field_lookup: Supplies known WordPress and Salesforce fields for fieldmap rows
        allowed_hosts: Hosts redirects may point at
        fallback_url: Where to send the browser when a redirect target is unsafe
    """

    def __init__(self, mappings, transients, field_lookup=None,
                 allowed_hosts: Iterable[str] = (), fallback_url: str = "/admin"):
        self.mappings = mappings
        self.transients = transients
        self.field_lookup = field_lookup
        self.allowed_hosts = list(allowed_hosts)
        self.fallback_url = fallback_url

    def _redirect_to(self, url: Optional[str]) -> str:
        return safe_redirect_url(url, self.allowed_hosts, self.fallback_url)

    def submit(self, payload: Dict[str, Any], entity_kind: Union[EntityKind, str],
               method: Optional[str] = None) -> RedirectDecision:
        """
        Handle one form submission.

        Args:
            payload: Submitted form fields
            entity_kind: 'fieldmap' or 'object-map'
            method: add, edit, clone or delete; read from the payload when omitted

        Returns:
            Where to redirect, and why
        """
        kind = EntityKind(entity_kind)
        token_param = TOKEN_PARAMS[kind]
        token = payload_token(payload)

        try:
            submission = parse_submission(payload, kind, method)
        except ValidationError as e:
            logger.warning(f"Rejected {kind.value} submission: {e}")
            return self._stash(payload, token, token_param, Outcome.VALIDATION_FAILURE)

        try:
            self._persist(kind, submission)
        except PersistenceFailure as e:
            logger.warning(f"Could not save {kind.value}: {e}")
            return self._stash(payload, token, token_param, Outcome.PERSIST_FAILURE)

        # Drop stashes of the fixed attempt and of this exact payload
        prior = sanitize_key(payload.get(token_param))
        if prior:
            self.transients.delete(prior)
        if token != prior:
            self.transients.delete(token)

        logger.info(f"Saved {kind.value} ({submission.method.value})")
        return RedirectDecision(url=self._redirect_to(submission.redirect_url_success), outcome=Outcome.SUCCESS)

    def submit_fieldmap(self, payload: Dict[str, Any]) -> RedirectDecision:
        return self.submit(payload, EntityKind.FIELDMAP)

    def submit_object_map(self, payload: Dict[str, Any]) -> RedirectDecision:
        return self.submit(payload, EntityKind.OBJECT_MAP)

    def _stash(self, payload: Dict[str, Any], token: str, token_param: str, outcome: Outcome) -> RedirectDecision:
        if not self.transients.set(token, payload, 0):
            logger.error(f"Could not store submission {token}; the form will not be refilled")
        error_url = self._redirect_to(payload.get("redirect_url_error"))
        return RedirectDecision(url=add_query_arg(error_url, token_param, token), outcome=outcome, token=token)

    def _persist(self, kind: EntityKind, submission: Submission):
        method = submission.method
        try:
            if kind == EntityKind.FIELDMAP:
                result = self._persist_fieldmap(method, submission)
            else:
                result = self._persist_object_map(method, submission)
        except PersistenceFailure:
            raise
        except Exception as e:
            logger.error(f"Error saving {kind.value}: {e}", exc_info=True)
            raise PersistenceFailure(str(e)) from e
        if not result:
            raise PersistenceFailure(f"{kind.value} {method.value} was not saved")
        return result

    def _persist_fieldmap(self, method: Method, submission: Submission):
        if method == Method.DELETE:
            return self.mappings.delete_fieldmap(submission.id)
        data = submission.data()
        wordpress_fields = salesforce_fields = None
        if self.field_lookup is not None:
            wordpress_fields = self.field_lookup.wordpress_fields(submission.wordpress_object)
            salesforce_fields = self.field_lookup.salesforce_fields(submission.salesforce_object)
        if method in (Method.ADD, Method.CLONE):
            return self.mappings.create_fieldmap(data, wordpress_fields, salesforce_fields)
        return self.mappings.update_fieldmap(data, wordpress_fields, salesforce_fields, submission.id)

    def _persist_object_map(self, method: Method, submission: Submission):
        if method == Method.DELETE:
            return self.mappings.delete_object_map(submission.id)
        data = {k: v for k, v in submission.data().items() if v is not None and k != "id"}
        if method == Method.ADD:
            return self.mappings.create_object_map(data)
        return self.mappings.update_object_map(data, submission.id)

    def delete_fieldmap(self, payload: Dict[str, Any]) -> RedirectDecision:
        return self._delete(payload, self.mappings.delete_fieldmap, "fieldmap")

    def delete_object_map(self, payload: Dict[str, Any]) -> RedirectDecision:
        return self._delete(payload, self.mappings.delete_object_map, "object map")

    def _delete(self, payload: Dict[str, Any], delete, label: str) -> RedirectDecision:
        # Failed deletes send the id back rather than a transient token
        record_id = str(payload.get("id") or "").strip()
        error_url = self._redirect_to(payload.get("redirect_url_error"))
        if not record_id:
            logger.warning(f"Delete {label} submitted without an id")
            return RedirectDecision(url=error_url, outcome=Outcome.VALIDATION_FAILURE)
        try:
            result = delete(record_id)
        except Exception as e:
            logger.error(f"Error deleting {label} {record_id}: {e}", exc_info=True)
            result = False
        if result is True:
            return RedirectDecision(url=self._redirect_to(payload.get("redirect_url_success")), outcome=Outcome.SUCCESS)
        return RedirectDecision(url=add_query_arg(error_url, "id", record_id), outcome=Outcome.PERSIST_FAILURE)

    def save_user_mapping(self, user_id: Any, payload: Dict[str, Any], wp_client=None, sf_client=None):
        """
        Link a WordPress user to Salesforce from the profile screen.

        Returns:
            The saved object map, the push result, or None when nothing was requested
        """
        salesforce_id = str(payload.get("salesforce_id") or "").strip()
        if payload.get("salesforce_update_mapped_user") == "1":
            object_map = self.mappings.load_by_wordpress("user", user_id)
            if not object_map:
                logger.warning(f"User {user_id} has no object map to update")
                return None
            return self.mappings.update_object_map({"salesforce_id": salesforce_id}, object_map["id"])

        if payload.get("salesforce_create_mapped_user") == "1":
            if salesforce_id:
                return self.mappings.create_object_map({
                    "wordpress_id": str(user_id),
                    "wordpress_object": "user",
                    "salesforce_id": salesforce_id,
                    "last_sync_action": "",
                    "last_sync_status": self.mappings.status_success,
                    "last_sync_message": "Mapping object updated via function: save_user_mapping",
                })
            if payload.get("push_new_user_to_salesforce"):
                return push_to_salesforce("user", user_id, wp_client, sf_client, self.mappings)
        return None
