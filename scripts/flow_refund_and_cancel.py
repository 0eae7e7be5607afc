#!/usr/bin/env python3
"""
Booking, payment, cancellation and refund flow script.

DO NOT ADD BUSINESS LOGIC HERE.
This script only orchestrates API calls.
All rules live in the backend.

Usage:
    python scripts/flow_refund_and_cancel.py --room-id <UUID> --start 2026-06-01 --end 2026-07-06
    python scripts/flow_refund_and_cancel.py --room-id <UUID> --start 2026-06-01 --end 2026-07-06 --refund-later

Flow:
    1. Quote the stay
    2. Create booking
    3. Confirm booking
    4. Record a partial payment
    5. Record the balance (paid)
    6. Cancel booking with a full refund
       (--refund-later: cancel without refund, then settle via the refund endpoint)
    7. Show the audit trail
"""

import argparse
import json
import sys
from decimal import Decimal

import httpx

BASE_URL = "http://localhost:8000"
ACTOR = "flow-script"


def api_request(method: str, endpoint: str, data: dict | None = None, params: dict | None = None) -> dict:
    """Make an API request on behalf of the script's actor."""
    response = httpx.request(
        method,
        f"{BASE_URL}{endpoint}",
        headers={"X-Actor": ACTOR},
        json=data,
        params=params,
        timeout=10.0,
        follow_redirects=True,
    )
    return {"status": response.status_code, "data": response.json() if response.text else {}}


def print_step(step: int, title: str):
    """Print step header."""
    print(f"\n{'='*60}")
    print(f"STEP {step}: {title}")
    print("="*60)


def print_result(result: dict, fields: list[str] | None = None):
    """Print result, optionally filtering fields of the booking view."""
    if result["status"] >= 400:
        print(f"ERROR ({result['status']}): {json.dumps(result['data'], indent=2)}")
        return False

    print(f"Status: {result['status']}")
    data = result["data"]
    if fields:
        booking = data.get("booking", data)
        payment = data.get("payment", {})
        filtered = {k: booking.get(k, payment.get(k)) for k in fields}
        filtered["refund_owed"] = data.get("refund_owed")
        print(json.dumps(filtered, indent=2))
    else:
        print(json.dumps(data, indent=2))
    return True


def main():
    parser = argparse.ArgumentParser(description="Booking refund and cancellation flow")
    parser.add_argument("--room-id", required=True, help="Room UUID")
    parser.add_argument("--start", required=True, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", required=True, help="End date (YYYY-MM-DD, exclusive)")
    parser.add_argument("--guest-name", default="Juan dela Cruz", help="Guest name")
    parser.add_argument("--refund-later", action="store_true", help="Cancel first, settle the refund afterwards")
    parser.add_argument("--cancel-reason", default="Tenant moved out early", help="Cancellation reason")
    args = parser.parse_args()

    # Step 1: Quote
    print_step(1, "Quote the stay")
    quote_result = api_request("GET", f"/api/v1/rooms/{args.room_id}/pricing-quote", params={"start": args.start, "end": args.end})
    if not print_result(quote_result):
        sys.exit(1)

    # Step 2: Create booking
    print_step(2, "Create booking")
    booking_result = api_request("POST", "/api/v1/bookings", {
        "room_id": args.room_id,
        "guest_name": args.guest_name,
        "start_date": args.start,
        "end_date": args.end,
    })
    if not print_result(booking_result, ["id", "reference", "amount", "status", "payment_status"]):
        sys.exit(1)

    booking_id = booking_result["data"]["booking"]["id"]
    reference = booking_result["data"]["booking"]["reference"]
    amount = booking_result["data"]["booking"]["amount"]
    print(f"\nBooking created: {reference}")

    # Step 3: Confirm
    print_step(3, "Confirm booking")
    confirm_result = api_request("PATCH", f"/api/v1/bookings/{booking_id}/status", {"status": "confirmed"})
    if not print_result(confirm_result, ["reference", "status", "payment_status"]):
        sys.exit(1)
    print(f"\nInvoice issued: {confirm_result['data']['invoices'][0]['reference']}")

    # Step 4: Partial payment (half the charge, rounded down to whole units)
    print_step(4, "Record partial payment")
    first_instalment = str(Decimal(amount) // 2)
    partial_result = api_request("PATCH", f"/api/v1/bookings/{booking_id}/payment-status", {
        "payment_status": "partial",
        "amount_collected_delta": first_instalment,
    })
    if not print_result(partial_result, ["payment_status", "amount_collected"]):
        sys.exit(1)

    # Step 5: Balance
    print_step(5, "Record balance")
    paid_result = api_request("PATCH", f"/api/v1/bookings/{booking_id}/payment-status", {"payment_status": "paid"})
    if not print_result(paid_result, ["status", "payment_status", "amount_collected"]):
        sys.exit(1)

    # Step 6: Cancel (+ refund)
    if args.refund_later:
        print_step(6, "Cancel booking without refund, then settle")
        cancel_result = api_request("PATCH", f"/api/v1/bookings/{booking_id}/status", {
            "status": "cancelled",
            "cancellation_reason": args.cancel_reason,
        })
        if not print_result(cancel_result, ["status", "payment_status", "amount_collected"]):
            sys.exit(1)
        cancel_result = api_request("POST", f"/api/v1/bookings/{booking_id}/refund", {"refund_amount": amount})
    else:
        print_step(6, "Cancel booking with full refund")
        cancel_result = api_request("PATCH", f"/api/v1/bookings/{booking_id}/status", {
            "status": "cancelled",
            "cancellation_reason": args.cancel_reason,
            "should_refund": True,
            "refund_amount": amount,
        })
    if not print_result(cancel_result, ["status", "payment_status", "amount_collected", "refund_amount", "cancelled_at"]):
        sys.exit(1)

    # Step 7: History
    print_step(7, "Audit trail")
    history = api_request("GET", f"/api/v1/bookings/{booking_id}/history")
    for entry in history["data"]:
        print(f"{entry['created_at']}  {entry['action']:<24} {entry['actor']}")

    # Final summary
    payment = cancel_result["data"]["payment"]
    print("\n" + "="*60)
    print("REFUND & CANCEL FLOW COMPLETE")
    print("="*60)
    print(f"Booking:        {reference}")
    print(f"Charge:         {amount}")
    print(f"Collected:      {payment['amount_collected']}")
    print(f"Refund Amount:  {payment['refund_amount']}")
    print(f"Final Status:   {cancel_result['data']['booking']['status']} / {payment['payment_status']}")


if __name__ == "__main__":
    main()
