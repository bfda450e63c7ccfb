"""
Simulates an employee SMS reply against a running server

Usage: python scripts/simulate_reply.py "ACCEPT 123456" [+15557654321]
"""

import asyncio
import sys

import httpx

WEBHOOK_URL = "http://localhost:8000/api/sms-webhook"


async def simulate_reply(body: str, from_number: str):
    """Post what Twilio posts (form data, not JSON!)"""
    data = {
        "From": from_number,
        "Body": body,
        "MessageSid": "SM_simulated"
    }

    print(f"🧪 Posting to {WEBHOOK_URL}")
    print(f"📤 Sending data: {data}\n")

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(WEBHOOK_URL, data=data, timeout=10.0)
    except httpx.HTTPError as e:
        print(f"❌ Error: {e}")
        return

    print(f"✅ Status: {response.status_code}")
    print(f"📥 Response: {response.text[:200]}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    asyncio.run(simulate_reply(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else "+15557654321"))
