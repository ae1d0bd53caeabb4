#!/usr/bin/env python3
"""
Dev helper: send a test Nylas webhook to a running bridge.

Builds a message.created notification whose body looks like a forwarded
order form, signs the exact bytes with WEBHOOK_SECRET the way Nylas does
(X-Nylas-Signature, hex HMAC-SHA256), and POST-s it to /webhook. Can also
run the GET challenge handshake.

Usage
-----
# Signed message.created with a generated order-form body
python scripts/send_test_webhook.py

# Stub notification (ids only) so the bridge fetches the message from Nylas
python scripts/send_test_webhook.py --stub --message-id msg_123 --grant-id grant_abc

# Verification handshake only
python scripts/send_test_webhook.py --challenge abc123

# Target a deployed instance
python scripts/send_test_webhook.py --url https://bridge.example.com

Environment / .env
------------------
WEBHOOK_SECRET   Shared webhook secret (required unless --secret or --challenge).
"""

import argparse
import json
import os
import sys
import textwrap
from pathlib import Path

import httpx
from dotenv import load_dotenv

from bridge.services.signature import compute_signature


# ---------------------------------------------------------------------------
# Sample order form
# ---------------------------------------------------------------------------

def _make_sample_body(company: str, resource: str, url: str) -> str:
    """Return an HTML body shaped like a forwarded order form."""
    return (
        "<div>---------- Forwarded message ---------</div>"
        "<table>"
        f"<tr><td><b>Företag:</b></td><td>{company}</td></tr>"
        "<tr><td><b>Start:</b></td><td>2025-03-01</td></tr>"
        "<tr><td><b>Ort:</b></td><td>Stockholm</td></tr>"
        f"<tr><td><b>Resurs:</b></td><td>{resource}</td></tr>"
        f"<tr><td><b>Url:</b></td><td><a href=\"{url}\">{url}</a></td></tr>"
        "</table>"
    )


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------

def _build_message_payload(message_id: str, grant_id: str, body: str, subject: str) -> dict:
    """Nylas v3 message.created notification with the message inline."""
    return {
        "specversion": "1.0",
        "type": "message.created",
        "source": "/google/emails/realtime",
        "id": f"evt_{message_id}",
        "data": {
            "application_id": "test-application",
            "object": {
                "id": message_id,
                "grant_id": grant_id,
                "object": "message",
                "subject": subject,
                "body": body,
                "snippet": "",
            },
        },
    }


def _build_stub_payload(message_id: str, grant_id: str) -> dict:
    """Notification that references the message by id only."""
    return {
        "specversion": "1.0",
        "type": "message.created",
        "id": f"evt_{message_id}",
        "data": {"object": {"id": message_id, "grant_id": grant_id}},
    }


# ---------------------------------------------------------------------------
# Pretty printer
# ---------------------------------------------------------------------------

def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    print(response.text)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    # scripts/ lives one level below the project root
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")

    parser = argparse.ArgumentParser(
        prog="send_test_webhook.py",
        description=textwrap.dedent("""\
            Send a signed test Nylas notification (or a challenge handshake)
            to the webhook bridge.

            Reads WEBHOOK_SECRET from the environment or a .env file in the
            project root.
        """),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--url",
        default="http://localhost:3000",
        help="Bridge base URL (default: http://localhost:3000)",
    )
    parser.add_argument(
        "--challenge",
        default=None,
        metavar="TOKEN",
        help="Send GET /webhook?challenge=TOKEN instead of a notification.",
    )
    parser.add_argument("--stub", action="store_true", help="Send an ids-only notification.")
    parser.add_argument("--message-id", default="msg_test_001")
    parser.add_argument("--grant-id", default="grant_test_001")
    parser.add_argument("--company", default="Acme AB")
    parser.add_argument("--resource", default="Jane Doe <jane@example.com>")
    parser.add_argument("--site", default="https://www.example.se/")
    parser.add_argument("--subject", default="Fwd: Ny order")
    parser.add_argument(
        "--secret",
        default=None,
        metavar="SECRET",
        help="Override the signing secret (defaults to WEBHOOK_SECRET).",
    )
    parser.add_argument(
        "--bad-signature",
        action="store_true",
        help="Send a deliberately wrong signature (expect 403).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the payload and signature without sending.",
    )

    args = parser.parse_args()
    endpoint = f"{args.url.rstrip('/')}/webhook"

    if args.challenge is not None:
        print(f"GET {endpoint}?challenge={args.challenge}")
        try:
            response = httpx.get(endpoint, params={"challenge": args.challenge}, timeout=30)
        except httpx.ConnectError:
            print(f"\nERROR: Could not connect to {endpoint}", file=sys.stderr)
            return 1
        _print_response(response)
        echoed = response.text == args.challenge
        print(f"Challenge echoed exactly: {echoed}")
        return 0 if response.status_code == 200 and echoed else 1

    secret = args.secret or os.getenv("WEBHOOK_SECRET", "")
    if not secret and not args.dry_run:
        print(
            "ERROR: No webhook secret found.\n"
            "Set WEBHOOK_SECRET in your environment or .env file, or pass --secret.",
            file=sys.stderr,
        )
        return 1

    if args.stub:
        payload = _build_stub_payload(args.message_id, args.grant_id)
    else:
        body = _make_sample_body(args.company, args.resource, args.site)
        payload = _build_message_payload(args.message_id, args.grant_id, body, args.subject)

    # Sign the exact bytes that will be sent
    raw_body = json.dumps(payload).encode("utf-8")
    signature = compute_signature(raw_body, secret or "dry-run")
    if args.bad_signature:
        signature = "0" * len(signature)

    print(f"Endpoint  : {endpoint}")
    print(f"Event     : {payload['type']} ({'stub' if args.stub else 'inline'})")
    print(f"Signature : {signature}")

    if args.dry_run:
        print("\n[DRY RUN] Payload:")
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return 0

    try:
        response = httpx.post(
            endpoint,
            content=raw_body,
            headers={
                "Content-Type": "application/json",
                "X-Nylas-Signature": signature,
            },
            timeout=30,
        )
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the bridge running? Start it with:\n"
            "  uvicorn bridge.main:app --port 3000",
            file=sys.stderr,
        )
        return 1
    except httpx.HTTPError as exc:
        print(f"\nERROR: {exc}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
