# playground/app.py
import json
import logging
import time
import traceback
from datetime import datetime, timezone
from urllib.parse import urlsplit, urlunsplit

import requests
from flask import Blueprint, current_app, jsonify, redirect, render_template, request

from .errors import DeadlineExceeded, KanthorError, StoreError, WebhookVerificationError
from .models import Credentials, get_messages, get_printout_items, key_credentials, key_endpoint, key_message, key_printout
from .utils.kanthor import CONDITION_SOURCE_APP_ID, MESSAGE_TYPE, match_equal
from .verify_signature import HEADER_WEBHOOK_ID, verify_signature

# Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

bp = Blueprint("playground", __name__)

WRITE_METHODS = ("POST", "PATCH", "PUT")


def _store():
    return current_app.extensions["store"]

def _clients():
    return current_app.extensions["clients"]

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

def _remaining(deadline: float) -> float:
    left = deadline - time.monotonic()
    if left <= 0:
        raise DeadlineExceeded(current_app.config["BOOTSTRAP_TIMEOUT"])
    return left

def _webhook_target(app_id: str) -> str:
    base = urlsplit(current_app.config["KANTHOR_PLAYGROUND_ENDPOINT"] or "")
    return urlunsplit((base.scheme, base.netloc, f"/app/{app_id}", "", ""))

def _server_error(error: str):
    return render_template("5xx.html", error=error, stack=traceback.format_exc()), 500

def _client_error(error: str, status: int = 400):
    return render_template("4xx.html", error=error), status

def _headers():
    return {k: request.headers.getlist(k) for k in request.headers.keys()}


@bp.route("/readiness", methods=["GET"])
def readiness():
    return "ready", 200

@bp.route("/liveness", methods=["GET"])
def liveness():
    return "live", 200

@bp.route("/", methods=["GET"])
def bootstrap():
    """Provision a workspace, application and endpoint, send a sample message, then show the app."""
    deadline = time.monotonic() + current_app.config["BOOTSTRAP_TIMEOUT"]
    store = _store()
    started = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    try:
        wsc = current_app.extensions["portal"].provision(deadline=deadline)
    except Exception as e:
        logger.exception("Could not provision a workspace")
        return _server_error(f"Could not connect to the server {e}")

    try:
        sdk = current_app.extensions["sdk_factory"](wsc.user, wsc.password)
    except Exception as e:
        logger.exception("Could not init the SDK")
        return _server_error(f"Could not init the SDK {e}")

    try:
        app = sdk.create_application(name=f"playaround at {started}", timeout=_remaining(deadline))
        app_id = app["id"]
        logger.info("Created application %s in workspace %s", app_id, wsc.id)

        target = _webhook_target(app_id)
        ep = sdk.create_endpoint(
            app_id=app_id,
            name=f"POST {target}",
            uri=target,
            method="POST",
            timeout=_remaining(deadline),
        )
        sdk.create_endpoint_rule(
            ep_id=ep["id"],
            name=f"passthrough all messages from the app_id:{app_id}",
            condition_source=CONDITION_SOURCE_APP_ID,
            condition_expression=match_equal(app_id),
            priority=100,
            exclusionary=False,
            timeout=_remaining(deadline),
        )
        store.set(key_endpoint(app_id), ep)

        _clients().register(app_id, sdk)
        # store permanently for reload
        store.set(key_credentials(app_id), Credentials(app_id=app_id, user=wsc.user, password=wsc.password).to_dict())

        sdk.create_message(
            app_id=app_id,
            type=MESSAGE_TYPE,
            body={"ping": int(time.time() * 1000)},
            headers={"X-Powered-By": "Kanthor SDK"},
            timeout=_remaining(deadline),
        )
    except Exception as e:
        logger.exception("Bootstrap failed")
        return _server_error(str(e))

    return redirect(urlsplit(target).path, code=302)

@bp.route("/app/<app_id>", methods=["GET"])
def app_detail(app_id):
    sdk = _clients().get(app_id)
    if sdk is None:
        return _client_error("App does not have any associated SDK", 404)

    try:
        app = sdk.get_application(app_id, timeout=current_app.config["BOOTSTRAP_TIMEOUT"])
    except (KanthorError, requests.RequestException, ValueError) as e:
        logger.warning("Could not fetch app %s: %s", app_id, e)
        return _client_error(str(e), 502)

    try:
        messages = get_messages(_store(), app_id)
    except StoreError as e:
        return _client_error(str(e), 500)
    sdk_endpoint = current_app.config["KANTHOR_SDK_ENDPOINT_PUBLIC"] or sdk.base_url

    return render_template(
        "index.html",
        sdk_endpoint=sdk_endpoint,
        app=app,
        auth={"Authorization": sdk.authorization},
        timestamp=_now(),
        messages=messages,
        message_count=len(messages),
        message_type=MESSAGE_TYPE,
    )

@bp.route("/app/<app_id>/message", methods=["GET"])
def app_messages(app_id):
    try:
        messages = get_messages(_store(), app_id)
    except StoreError as e:
        return _client_error(str(e), 500)
    return render_template("message.html", messages=messages, message_count=len(messages))

@bp.route("/app/<app_id>/message/count", methods=["GET"])
def app_message_count(app_id):
    try:
        messages = get_messages(_store(), app_id)
    except StoreError as e:
        return _client_error(str(e), 500)
    return render_template("message-count.html", message_count=len(messages))

@bp.route("/app/<app_id>", methods=["POST"])
def receive(app_id):
    store = _store()
    try:
        ep = store.get(key_endpoint(app_id))
    except StoreError as e:
        return jsonify({"error": str(e)}), 500
    if not isinstance(ep, dict):
        return jsonify({"error": f"malformed endpoint record for {app_id}"}), 500

    msg_id = request.headers.get(HEADER_WEBHOOK_ID, "")
    if not msg_id:
        return jsonify({"error": "message-id header must be set"}), 400

    body = request.get_data()
    try:
        verify_signature(ep.get("secret_key", ""), body, request.headers)
    except WebhookVerificationError as e:
        logger.warning("Invalid signature for %s on app %s: %s", msg_id, app_id, e)
        return jsonify({"error": str(e)}), 400

    data = {
        "id": msg_id,
        "timestamp": _now(),
        "headers": _headers(),
        "body": body.decode("utf-8", errors="replace"),
    }
    try:
        store.set_string_expire(key_message(app_id, msg_id), json.dumps(data), current_app.config["MESSAGE_TTL"])
    except StoreError as e:
        logger.exception("Could not store message %s", msg_id)
        return jsonify({"error": str(e)}), 500

    logger.info("Received message %s for app %s", msg_id, app_id)
    return jsonify({"msg_id": msg_id, "timestamp": _now()}), 200

@bp.route("/printout", methods=["GET", *WRITE_METHODS])
def printout():
    store = _store()
    if request.method in WRITE_METHODS:
        data = {
            "method": request.method,
            "headers": _headers(),
            "body": request.get_data().decode("utf-8", errors="replace"),
            "timestamp": _now(),
        }
        try:
            store.set_string_expire(key_printout(str(time.time_ns())), json.dumps(data), current_app.config["PRINTOUT_TTL"])
        except StoreError as e:
            logger.exception("Could not store printout")
            return jsonify({"error": str(e)}), 500
        return "", 201

    try:
        items = get_printout_items(store)
    except StoreError as e:
        return _client_error(str(e), 500)
    return render_template("printout.html", items=items, item_count=len(items))
