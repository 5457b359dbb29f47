# playground/__init__.py
from functools import partial

from flask import Flask

from .config import Config
from .db import open_store
from .registry import ClientRegistry
from .utils.kanthor import init_sdk
from .utils.portal import PortalClient


def create_app(overrides=None, store=None, clients=None, portal=None, sdk_factory=None):
    """
    Build the playground app. Collaborators default to the real ones built from
    Config; tests pass their own.
    """
    app = Flask(__name__, static_folder="static", static_url_path="/assets")
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    if sdk_factory is None:
        sdk_factory = partial(init_sdk, host=app.config["KANTHOR_SDK_HOST"])
    if store is None:
        # a store that cannot be opened aborts startup
        store = open_store(app.config["STORAGE_PATH"])
    if clients is None:
        clients = ClientRegistry()
        clients.load(store, sdk_factory)
    if portal is None:
        portal = PortalClient.from_config(app.config)

    app.extensions["store"] = store
    app.extensions["clients"] = clients
    app.extensions["portal"] = portal
    app.extensions["sdk_factory"] = sdk_factory

    from .app import bp as main_bp
    app.register_blueprint(main_bp)

    return app
