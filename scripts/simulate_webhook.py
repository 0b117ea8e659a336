import hashlib
import hmac
import json
import sys
import time
import os

# Ensure app is in path
sys.path.append(os.getcwd())

import httpx
from app.config import get_settings

def signed_checkout_event(phone: str, secret: str):
    """Builds a checkout.session.completed event signed the way Stripe signs it."""
    event = {
        "id": f"evt_sim_{int(time.time())}",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": "cs_simulated",
                "customer": "cus_simulated",
                "subscription": f"sub_sim_{int(time.time())}",
                "metadata": {"phone": phone},
            }
        },
    }
    payload = json.dumps(event).encode()
    timestamp = int(time.time())
    digest = hmac.new(secret.encode(), f"{timestamp}.{payload.decode()}".encode(), hashlib.sha256).hexdigest()
    return payload, f"t={timestamp},v1={digest}"

def simulate_checkout(phone: str, base_url: str):
    settings = get_settings()
    if not settings.STRIPE_WEBHOOK_SECRET:
        print("STRIPE_WEBHOOK_SECRET is not set; the server would reject the event.")
        sys.exit(1)

    payload, signature = signed_checkout_event(phone, settings.STRIPE_WEBHOOK_SECRET)
    print(f"--- Posting checkout.session.completed for {phone} to {base_url} ---")
    response = httpx.post(
        f"{base_url.rstrip('/')}/webhooks/stripe",
        content=payload,
        headers={"Stripe-Signature": signature, "Content-Type": "application/json"},
        timeout=30,
    )
    print(f"{response.status_code}: {response.text}")

    status = httpx.post(f"{base_url.rstrip('/')}/status", json={"phone": phone}, timeout=30)
    print(f"Status now: {status.json()}")

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("usage: python scripts/simulate_webhook.py <phone> [base_url]")
        sys.exit(1)
    simulate_checkout(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else "http://localhost:8000")
