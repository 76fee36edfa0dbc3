import os
import logging
from functools import wraps

from flask import Flask, request, jsonify, redirect

from config import (
    ADMIN_TOKEN,
    ADMIN_URL,
    ALLOWED_REDIRECT_HOSTS,
    LOG_LEVEL,
    MAPPINGS_FILE,
    PULL_SCHEDULE_NUMBER,
    PULL_SCHEDULE_UNIT,
    PUSH_SCHEDULE_NUMBER,
    PUSH_SCHEDULE_UNIT,
    SALESFORCE_CONSUMER_KEY,
    SALESFORCE_CONSUMER_SECRET,
    TRANSIENTS_FILE,
)
from object_sync.admin import AdminFormController, AdminPage, TransientStore
from object_sync.salesforce_sync import (
    FieldLookup,
    MappingStore,
    SalesforceClient,
    get_salesforce_object_description,
    get_wp_sf_object_fields,
    pull_from_salesforce,
    push_to_salesforce,
    refresh_mapped_data,
)
from object_sync.utils import add_query_arg
from object_sync.wordpress_client import WordPressClient

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["ADMIN_TOKEN"] = ADMIN_TOKEN


# --- Collaborators ---
def _services() -> dict:
    return app.extensions.setdefault("object_sync", {})


def get_mappings() -> MappingStore:
    services = _services()
    if "mappings" not in services:
        services["mappings"] = MappingStore(MAPPINGS_FILE)
    return services["mappings"]


def get_transients() -> TransientStore:
    services = _services()
    if "transients" not in services:
        services["transients"] = TransientStore(TRANSIENTS_FILE)
    return services["transients"]


def get_wordpress() -> WordPressClient:
    services = _services()
    if "wordpress" not in services:
        services["wordpress"] = WordPressClient()
    return services["wordpress"]


def get_salesforce() -> SalesforceClient:
    services = _services()
    if "salesforce" not in services:
        try:
            services["salesforce"] = SalesforceClient()
        except Exception as e:
            # Stay unauthorized; the Authorize tab can still connect
            logger.warning(f"Salesforce unavailable: {e}")
            services["salesforce"] = SalesforceClient(connect=False)
    return services["salesforce"]


def get_controller() -> AdminFormController:
    sf_client = get_salesforce()
    return AdminFormController(
        get_mappings(),
        get_transients(),
        field_lookup=FieldLookup(get_wordpress(), sf_client if sf_client.is_authorized else None),
        allowed_hosts=ALLOWED_REDIRECT_HOSTS,
        fallback_url=ADMIN_URL,
    )


# --- Request helpers ---
def form_payload(form) -> dict:
    """
    Flatten a submitted form into a dict.

    Keys posted more than once, or named with a trailing '[]', become lists.
    """
    payload = {}
    for key in form.keys():
        values = form.getlist(key)
        if key.endswith("[]"):
            payload[key[:-2]] = values
        else:
            payload[key] = values if len(values) > 1 else values[0]
    return payload


def can_configure() -> bool:
    token = app.config.get("ADMIN_TOKEN")
    return not token or request.headers.get("X-Admin-Token") == token


def admin_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not can_configure():
            logger.warning(f"Rejected admin request to {request.path}")
            return jsonify({"success": False, "error": "Permission denied"}), 403
        return view(*args, **kwargs)
    return wrapped


# --- Admin form routes ---
@app.route('/admin/fieldmaps', methods=['POST'])
@admin_required
def post_fieldmap():
    decision = get_controller().submit_fieldmap(form_payload(request.form))
    return redirect(decision.url)


@app.route('/admin/fieldmaps/delete', methods=['POST'])
@admin_required
def delete_fieldmap():
    decision = get_controller().delete_fieldmap(form_payload(request.form))
    return redirect(decision.url)


@app.route('/admin/object-maps', methods=['POST'])
@admin_required
def post_object_map():
    decision = get_controller().submit_object_map(form_payload(request.form))
    return redirect(decision.url)


@app.route('/admin/object-maps/delete', methods=['POST'])
@admin_required
def delete_object_map():
    decision = get_controller().delete_object_map(form_payload(request.form))
    return redirect(decision.url)


@app.route('/admin/users/<user_id>/salesforce', methods=['POST'])
@admin_required
def save_user_mapping(user_id):
    """Link a WordPress user to a Salesforce record from the profile screen."""
    try:
        result = get_controller().save_user_mapping(
            user_id, form_payload(request.form), wp_client=get_wordpress(), sf_client=get_salesforce()
        )
    except Exception as e:
        logger.error(f"Error saving Salesforce mapping for user {user_id}: {e}", exc_info=True)
        return jsonify({"success": False, "error": str(e)}), 500
    if isinstance(result, dict) and "success" in result:
        return jsonify(result), 200 if result["success"] else 500
    return jsonify({"success": bool(result), "data": result or None}), 200 if result else 400


@app.route('/admin', methods=['GET'])
def admin_page():
    """
    Data for the settings screen.

    Query params:
        tab: settings, authorize, fieldmaps, schedule, mapping_errors...
        method: add, edit, clone or delete on the fieldmaps/mapping_errors tabs
        id: record being edited
        transient / map_transient: token of a submission that failed to save
    """
    page = AdminPage(
        get_mappings(),
        get_transients(),
        sf_client=get_salesforce(),
        consumer_key=SALESFORCE_CONSUMER_KEY,
        consumer_secret=SALESFORCE_CONSUMER_SECRET,
        schedules={
            "push_schedule_number": PUSH_SCHEDULE_NUMBER,
            "push_schedule_unit": PUSH_SCHEDULE_UNIT,
            "pull_schedule_number": PULL_SCHEDULE_NUMBER,
            "pull_schedule_unit": PULL_SCHEDULE_UNIT,
        },
        admin_url=ADMIN_URL,
    )
    allowed = can_configure()
    return jsonify(page.build(request.args, can_configure=allowed)), 200 if allowed else 403


@app.route('/admin/authorize', methods=['GET'])
@admin_required
def authorize():
    """
    OAuth callback: exchange the code Salesforce sends back for tokens.

    Query params:
        code: OAuth authorization code
    """
    code = request.args.get('code')
    if not code:
        return jsonify({"success": False, "error": "Missing code"}), 400
    try:
        get_salesforce().request_token(code)
    except Exception as e:
        logger.error(f"Error requesting Salesforce token: {e}", exc_info=True)
        return jsonify({"success": False, "error": str(e)}), 500
    return redirect(add_query_arg(ADMIN_URL, "tab", "authorize"))


@app.route('/admin/logout', methods=['POST'])
@admin_required
def logout():
    get_salesforce().logout()
    return redirect(add_query_arg(ADMIN_URL, "tab", "authorize"))


# --- AJAX routes ---
AJAX_ACTIONS = {
    'get_salesforce_object_description': lambda data: get_salesforce_object_description(get_salesforce(), data),
    'get_wordpress_object_description': lambda data: get_wordpress().get_wordpress_object_fields(
        data.get('wordpress_object', '')
    ),
    'get_wp_sf_object_fields': lambda data: get_wp_sf_object_fields(
        get_wordpress(), get_salesforce(), data.get('wordpress_object', ''), data.get('salesforce_object', '')
    ),
    'push_to_salesforce': lambda data: push_to_salesforce(
        data.get('wordpress_object', ''), data.get('wordpress_id', ''), get_wordpress(), get_salesforce(), get_mappings()
    ),
    'pull_from_salesforce': lambda data: pull_from_salesforce(
        data.get('salesforce_id', ''), data.get('wordpress_object', ''), get_wordpress(), get_salesforce(), get_mappings()
    ),
    'refresh_mapped_data': lambda data: refresh_mapped_data(data.get('mapping_id', ''), get_mappings()),
}


@app.route('/ajax/<action>', methods=['POST'])
@admin_required
def ajax(action):
    handler = AJAX_ACTIONS.get(action)
    if handler is None:
        return jsonify({"success": False, "error": f"Unknown action {action}"}), 404
    try:
        result = handler(form_payload(request.form))
        return jsonify({"success": True, "data": result}), 200
    except Exception as e:
        logger.error(f"Error in {action}: {e}", exc_info=True)
        return jsonify({"success": False, "error": str(e)}), 500


@app.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "ok"}), 200


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)), debug=False)
