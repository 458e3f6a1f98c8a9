#!/usr/bin/env python3
"""Seed demo sponsors and trainees into a running Cohort backend.

Usage:
    # Start the backend first (development exposes verification codes):
    uvicorn cohort.web.app:create_app --factory --port 8080

    # Seed demo data:
    python3 scripts/seed_demo_data.py

    # Seed against a different host:
    python3 scripts/seed_demo_data.py --base-url http://localhost:9000

Every trainee goes through the public API: a code is requested, read back
from the development response, and used to register. The backend must run
with COHORT_ENVIRONMENT=development (the default) for this to work.
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone

import httpx

DEFAULT_BASE_URL = "http://localhost:8080"

SPONSORS = [
    {"name": "Federal Ministry of Youth Development", "description": "Federal youth empowerment scheme"},
    {"name": "Lagos State Government", "description": "State sponsorship programme"},
    {"name": "Self Sponsored"},
]

TRAINEES = [
    {
        "firstName": "Chinedu", "surname": "Okafor", "dateOfBirth": "1999-04-12",
        "gender": "male", "state": "anambra", "lga": "Awka South",
        "email": "chinedu.okafor@example.com", "phone": "08031234567",
    },
    {
        "firstName": "Aisha", "middleName": "Zainab", "surname": "Bello",
        "dateOfBirth": "2001-09-30", "gender": "female", "state": "kano", "lga": "Nasarawa",
        "email": "aisha.bello@example.com", "phone": "+2348051234567",
    },
    {
        "firstName": "Tunde", "surname": "Adeyemi", "dateOfBirth": "1998-01-05",
        "gender": "male", "state": "lagos", "lga": "Ikeja",
        "email": "tunde.adeyemi@example.com", "phone": "07061234567",
    },
    {
        "firstName": "Ngozi", "surname": "Eze", "dateOfBirth": "2000-06-18",
        "gender": "female", "state": "enugu", "lga": "Nsukka",
        "email": "ngozi.eze@example.com", "phone": "09091234567",
    },
]


def api(
    client: httpx.Client,
    method: str,
    path: str,
    *,
    json: dict | None = None,
) -> dict | list | None:
    """Make an API call and return parsed JSON, or None on failure."""
    resp = client.request(method, path, json=json)
    if resp.status_code >= 400:
        print(f"  FAILED {method} {path} -> {resp.status_code}: {resp.text[:200]}")
        return None
    return resp.json()


def section(title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")


def seed_sponsors(client: httpx.Client) -> list[dict]:
    section("Sponsors")
    created = []
    for sponsor in SPONSORS:
        r = api(client, "POST", "/api/sponsors", json=sponsor)
        if r:
            created.append(r)
            print(f"  + {r['name']}")
    return created


def seed_trainees(client: httpx.Client, sponsors: list[dict]) -> None:
    section("Trainees")
    for index, trainee in enumerate(TRAINEES):
        method = "email" if index % 2 == 0 else "phone"
        identifier = trainee[method]
        sent = api(
            client, "POST", "/api/verification/send",
            json={"identifier": identifier, "method": method},
        )
        if not sent or "code" not in sent:
            print("  Verification codes are not exposed; is the backend in development mode?")
            return

        payload = {**trainee, "verificationMethod": method, "verificationCode": sent["code"]}
        if sponsors:
            payload["sponsorId"] = sponsors[index % len(sponsors)]["id"]
        r = api(client, "POST", "/api/trainees/register", json=payload)
        if r:
            data = r["data"]
            print(
                f"  + {data['tagNumber']} {trainee['firstName']} {trainee['surname']}"
                f" -> {data['roomBlock']} Room {data['roomNumber']}"
            )


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo data into a running Cohort backend")
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help=f"Backend base URL (default: {DEFAULT_BASE_URL})",
    )
    args = parser.parse_args()

    print("Cohort Demo Data Seeder")
    print(f"Target: {args.base_url}")
    print(f"Time:   {datetime.now(timezone.utc).isoformat()}")

    with httpx.Client(base_url=args.base_url, timeout=30.0) as client:
        try:
            health = api(client, "GET", "/api/health")
        except httpx.ConnectError:
            health = None
        if not health:
            print(f"\nERROR: Cannot reach {args.base_url}. Start the backend first:")
            print("  uvicorn cohort.web.app:create_app --factory --port 8080")
            sys.exit(1)

        print(f"Backend: {health.get('status', 'unknown')} ({health.get('environment', '?')})")

        sponsors = seed_sponsors(client)
        seed_trainees(client, sponsors)

        section("Done")
        print(f"  Trainee list: {args.base_url}/trainees")


if __name__ == "__main__":
    main()
