#!/usr/bin/env python3
"""Simulation script for the Rootsy session store.

Drives a running backend through one debugging session end to end:
1. Create a session covering the last day
2. Ingest a batch of mock log lines
3. Group the error lines by service
4. Record a root cause and fix for each group
5. Switch to the session and print what the store holds
"""

import random
import time

import requests

API_URL = "http://localhost:8000/api/v1"

SERVICES = ["checkout", "payments", "inventory", "auth"]

MESSAGES = {
    "error": [
        "Connection to database timed out after 30000ms",
        "Unhandled exception in request handler: KeyError 'user_id'",
        "Upstream returned 503 Service Unavailable",
    ],
    "warn": [
        "Retrying request (attempt 2 of 3)",
        "Slow query detected: 2300ms",
    ],
    "info": [
        "Request completed in 42ms",
        "Cache warmed with 1200 entries",
    ],
}


def mock_logs(count: int, end_time: int) -> list[dict[str, object]]:
    """Build ``count`` fake log records spread over the hour before end_time."""
    records: list[dict[str, object]] = []
    for _ in range(count):
        level = random.choice(list(MESSAGES))
        records.append(
            {
                "content": random.choice(MESSAGES[level]),
                "timestamp": end_time - random.randint(0, 3_600_000),
                "service": random.choice(SERVICES),
                "level": level,
            }
        )
    return records


def call(method: str, path: str, payload: object | None = None) -> object:
    """Send a request to the backend API and return the decoded body."""
    response = requests.request(method, f"{API_URL}{path}", json=payload, timeout=10)
    response.raise_for_status()
    return response.json()


def main() -> None:
    """Run one simulated debugging session."""
    print("=== Rootsy Session Simulation ===\n")

    now = int(time.time() * 1000)

    print("Step 1: Creating session...")
    session = call(
        "POST",
        "/sessions",
        {"name": "Simulated outage", "cloudProvider": "aws", "endTime": now},
    )
    assert isinstance(session, dict)
    session_id = session["id"]
    print(f"  Session {session_id}")

    print("\nStep 2: Ingesting mock logs...")
    logs = call("POST", f"/sessions/{session_id}/logs", mock_logs(40, now))
    assert isinstance(logs, list)
    print(f"  Stored {len(logs)} logs")

    print("\nStep 3: Grouping errors by service...")
    by_service: dict[str, list[str]] = {}
    for log in logs:
        if log["logLevel"] == "error":
            by_service.setdefault(log["service"], []).append(log["id"])
    groupings = [
        {"name": f"{service} errors", "description": f"Errors raised by {service}", "logIds": ids}
        for service, ids in by_service.items()
    ]
    groups = call("POST", f"/sessions/{session_id}/groupings", groupings)
    assert isinstance(groups, list)
    print(f"  Created {len(groups)} groups")

    print("\nStep 4: Recording analysis...")
    for group in groups:
        call(
            "POST",
            f"/groups/{group['id']}/analysis",
            {
                "rootCause": f"{group['name']} trace back to an exhausted connection pool",
                "suggestedFix": "Raise the pool size and add a circuit breaker",
            },
        )
        print(f"  Analyzed {group['name']}")

    print("\nStep 5: Switching to the session...")
    call("PUT", "/sessions/current", {"sessionId": session_id})
    summaries = call("GET", "/sessions")
    assert isinstance(summaries, list)
    for summary in summaries:
        print(f"  {summary['name']}: {summary['logCount']} logs, status={summary['status']}")

    print("\n=== Simulation Complete ===")


if __name__ == "__main__":
    main()
