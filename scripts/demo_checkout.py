import json
import os

import httpx

BRIDGE = os.getenv("BRIDGE_URL", "http://127.0.0.1:8080")
API_KEY = os.getenv("VAPI_SHARED_KEY", "")

order = {
    "lineItems": [
        {
            "name": "Latte",
            "quantity": 2,
            "price": 450,
            "modifiers": [{"name": "Oat milk", "price": 75}],
        },
        {"name": "Croissant", "quantity": 1, "price": 325},
    ],
    # "taxPercent": 8.875,
}

with httpx.Client(timeout=30.0) as client:
    r = client.get(f"{BRIDGE}/api/healthz")
    print("Health:", r.status_code, r.text)
    r = client.post(f"{BRIDGE}/api", json=order, headers={"x-api-key": API_KEY})
    print("Status:", r.status_code)
    print(json.dumps(r.json(), indent=2))
