import os
import json
import sys
import uuid
import requests
from dotenv import load_dotenv

from playground.config import Config
from playground.db import open_store
from playground.models import key_endpoint
from playground.verify_signature import generate_headers

# Load .env variables
load_dotenv()

# Usage: python scripts/send_test_webhook.py <app_id>
APP_ID = sys.argv[1]
PLAYGROUND = os.getenv("KANTHOR_PLAYGROUND_ENDPOINT") or "http://127.0.0.1:9081"

# Endpoint secret persisted when the playground was bootstrapped
store = open_store(Config.STORAGE_PATH)
SECRET = store.get(key_endpoint(APP_ID))["secret_key"]
store.close()

# Payload to send
payload = {
    "app_id": APP_ID,
    "type": "testing.playground",
    "body": {"ping": "from send_test_webhook"},
}

# Convert payload to JSON bytes
data = json.dumps(payload).encode("utf-8")

# Sign it the way the platform does
headers = generate_headers(SECRET, f"msg_{uuid.uuid4().hex}", data)
headers["Content-Type"] = "application/json"

resp = requests.post(f"{PLAYGROUND.rstrip('/')}/app/{APP_ID}", headers=headers, data=data, timeout=15)

print("Status:", resp.status_code)
print("Response:", resp.json())
