#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import time
import uuid
from typing import Any

import httpx
from httpx import ConnectError

from booking_engine.infrastructure.calendly.webhook_verify import sign_body


def build_payload(event: str, email: str, name: str, invitee_uri: str) -> dict[str, Any]:
    start = time.strftime("%Y-%m-%dT%H:00:00Z", time.gmtime(time.time() + 86400))
    end = time.strftime("%Y-%m-%dT%H:30:00Z", time.gmtime(time.time() + 86400))
    return {
        "event": event,
        "payload": {
            "email": email,
            "name": name,
            "uri": invitee_uri,
            "status": "active" if event == "invitee.created" else "canceled",
            "event": {
                "uri": f"https://api.calendly.com/scheduled_events/{uuid.uuid4()}",
                "start_time": start,
                "end_time": end,
                "name": "Intro call",
            },
        },
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Send a test scheduling webhook POST")
    parser.add_argument("--url", default="http://127.0.0.1:8000/webhook")
    parser.add_argument("--event", default="invitee.created", choices=["invitee.created", "invitee.canceled"])
    parser.add_argument("--email", default="guest@example.com")
    parser.add_argument("--name", default="Test Guest")
    parser.add_argument("--invitee-uri", default=f"https://api.calendly.com/scheduled_events/x/invitees/{uuid.uuid4()}")
    parser.add_argument("--signing-key", default="", help="Webhook signing key for the signature header")
    args = parser.parse_args()

    payload = build_payload(args.event, args.email, args.name, args.invitee_uri)
    body = json.dumps(payload).encode("utf-8")

    headers = {"Content-Type": "application/json"}
    if args.signing_key:
        headers["Calendly-Webhook-Signature"] = sign_body(args.signing_key, body, int(time.time()))

    try:
        resp = httpx.post(args.url, content=body, headers=headers, timeout=10.0)
    except ConnectError:
        print("Connection refused. Is the FastAPI server running?")
        return

    print(f"invitee_uri: {args.invitee_uri}")
    print(f"Status: {resp.status_code}")
    print(resp.text)


if __name__ == "__main__":
    main()
