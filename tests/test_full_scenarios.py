import pytest
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient
from app.models.user import Role, Status
from conftest import checkout_event, fetch_user, sign_payload

@pytest.mark.asyncio
async def test_full_onboarding_scenario(client: AsyncClient, db_session, verifier, payments, telephony):
    phone = "+15551234567"

    # ==========================================
    # 1. Caller registers and gets a code
    # ==========================================

    response = await client.post("/start-verification", json={"name": "Alice", "phone": "5551234567"})
    assert response.status_code == 200
    user = await fetch_user(db_session, phone)
    assert user.status == Status.PENDING_VERIFICATION

    # Checkout is refused until the phone is verified
    response = await client.post("/create-checkout-session", json={"phone": phone})
    assert response.status_code == 403

    # ==========================================
    # 2. Code approved
    # ==========================================

    response = await client.post("/verify", json={"phone": phone, "code": "000000"})
    assert response.json()["status"] == "approved"
    user = await fetch_user(db_session, phone)
    assert user.verified is True
    assert user.status == Status.VERIFIED

    # ==========================================
    # 3. Checkout link goes out by SMS
    # ==========================================

    response = await client.post("/create-checkout-session", json={"phone": phone})
    assert response.status_code == 200
    assert payments.sessions[0][1] == {"phone": phone}
    assert telephony.messages[0][0] == phone

    # ==========================================
    # 4. Stripe reports the payment
    # ==========================================

    paid_at = datetime.now(timezone.utc).replace(tzinfo=None)
    payload = checkout_event(phone, customer="cus_alice", subscription="sub_alice")
    response = await client.post(
        "/webhooks/stripe",
        content=payload,
        headers={"Stripe-Signature": sign_payload(payload), "Content-Type": "application/json"},
    )
    assert response.status_code == 200

    user = await fetch_user(db_session, phone)
    assert user.role == Role.SUBSCRIBER
    assert user.status == Status.ACTIVE
    assert user.proxy_number == "+15557770001"
    expires = user.subscription_expires_at.replace(tzinfo=None)
    assert abs(expires - (paid_at + timedelta(days=30))) < timedelta(minutes=1)
    assert "+15557770001" in telephony.messages[-1][1]

    # ==========================================
    # 5. Someone calls the proxy number
    # ==========================================

    response = await client.post("/voice/proxy", data={"To": "+15557770001", "From": "+15550004444"})
    assert "<Dial" in response.text
    assert phone in response.text

    # ==========================================
    # 6. Caller-ID lookup sees the subscriber
    # ==========================================

    response = await client.get("/lookup", params={"phone": phone})
    assert response.json() == {
        "exists": True,
        "verified": True,
        "name": "Alice",
        "role": "subscriber",
        "status": "active",
    }

@pytest.mark.asyncio
async def test_reverification_keeps_subscription(client: AsyncClient, db_session):
    phone = "+15551234567"
    await client.post("/start-verification", json={"name": "Alice", "phone": phone})
    await client.post("/verify", json={"phone": phone, "code": "000000"})
    payload = checkout_event(phone)
    await client.post("/webhooks/stripe", content=payload, headers={"Stripe-Signature": sign_payload(payload)})

    # Subscriber registers again from a new device
    await client.post("/start-verification", json={"name": "Alice", "phone": phone})
    user = await fetch_user(db_session, phone)
    assert user.verified is False
    assert user.status == Status.PENDING_VERIFICATION
    assert user.role == Role.CALLER
    assert user.proxy_number == "+15557770001"

    # Forwarding does not depend on the verified flag
    response = await client.post("/voice/proxy", data={"To": "+15557770001"})
    assert "<Dial" in response.text

    await client.post("/verify", json={"phone": phone, "code": "000000"})
    user = await fetch_user(db_session, phone)
    assert user.verified is True
    assert user.role == Role.SUBSCRIBER
    assert user.status == Status.ACTIVE
