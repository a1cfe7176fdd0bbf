#!/usr/bin/env python3
"""
Smoke check for a deployed GuardMoGo API.
"""

import asyncio
import sys
import uuid
from typing import Any, Dict, Optional

import httpx


async def check_endpoint(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    params: Optional[Dict[str, Any]] = None,
    expected: tuple = (200,)
) -> Dict[str, Any]:
    """Call a single endpoint and record the outcome."""
    headers = {"X-Request-ID": f"smoke_{uuid.uuid4().hex[:12]}"}
    try:
        response = await client.request(method, url, params=params, headers=headers)

        return {
            "url": url,
            "method": method,
            "status_code": response.status_code,
            "success": response.status_code in expected,
            "response": response.json() if response.headers.get("content-type", "").startswith("application/json") else response.text,
            "error": None
        }
    except httpx.HTTPError as e:
        return {
            "url": url,
            "method": method,
            "status_code": None,
            "success": False,
            "response": None,
            "error": str(e)
        }


async def check_deployment(base_url: str) -> bool:
    """Run the read-only checks against a deployed GuardMoGo API."""
    print(f"Checking deployment at: {base_url}")
    print("=" * 60)

    checks = [
        {"name": "Liveness", "url": f"{base_url}/healthz"},
        {"name": "Component Health", "url": f"{base_url}/api/v1/health"},
        {"name": "Number Lookup", "url": f"{base_url}/api/v1/numbers/check", "params": {"number": "0244123456"}},
        {"name": "Top Reported Numbers", "url": f"{base_url}/api/v1/numbers/top", "params": {"limit": 5}},
        {"name": "Dashboard Statistics", "url": f"{base_url}/api/v1/dashboard/stats"},
        {"name": "Latest Reports", "url": f"{base_url}/api/v1/reports", "params": {"limit": 5}},
        {"name": "Safety Tips", "url": f"{base_url}/api/v1/safety-tips"},
        {"name": "Guest Session", "url": f"{base_url}/api/v1/auth/session"},
        # Writes must be refused without a signed-in user
        {"name": "Anonymous Report Rejected", "url": f"{base_url}/api/v1/reports", "method": "POST", "expected": (401, 422)},
    ]

    results = []
    async with httpx.AsyncClient(timeout=30.0) as client:
        for check in checks:
            print(f"Checking: {check['name']}")
            result = await check_endpoint(
                client,
                check["url"],
                check.get("method", "GET"),
                check.get("params"),
                check.get("expected", (200,))
            )
            results.append({**check, **result})

            if result["success"]:
                print(f"  OK     - Status: {result['status_code']}")
            else:
                print(f"  FAILED - Status: {result.get('status_code', 'N/A')}, Error: {result['error']}")
            print()

    print("=" * 60)
    print("DEPLOYMENT CHECK SUMMARY")
    print("=" * 60)

    passed = sum(1 for r in results if r["success"])
    total = len(results)

    print(f"Checks Passed: {passed}/{total}")
    print(f"Success Rate: {passed/total*100:.1f}%")

    if passed == total:
        print("All checks passed. Deployment is working correctly.")
        return True

    print("Some checks failed. Check the deployment.")
    for check in (r for r in results if not r["success"]):
        detail = check["error"] or f"HTTP {check['status_code']}"
        print(f"  - {check['name']}: {detail}")
    return False


async def main():
    if len(sys.argv) != 2:
        print("Usage: python deploy_check.py <base_url>")
        print("Example: python deploy_check.py https://guardmogo-api.onrender.com")
        sys.exit(1)

    base_url = sys.argv[1].rstrip('/')
    success = await check_deployment(base_url)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    asyncio.run(main())
