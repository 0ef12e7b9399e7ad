#!/usr/bin/env python3
"""
Manual API smoke test for agency-finance.

Usage:
  python scripts/test_api.py [--base URL] [--year 2025 --month 3]

  Ensure the server is running first:
    PORT=5050 python run.py

  And the DB is seeded:
    python scripts/seed.py --force  # if needed
"""
import argparse
import json
import sys
from urllib.request import Request, urlopen
from urllib.error import HTTPError, URLError

BASE = "http://127.0.0.1:5050"


def req(method: str, path: str, data=None, token=None) -> tuple[dict | None, int]:
    url = f"{BASE.rstrip('/')}{path}"
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    body = json.dumps(data).encode() if data else None
    try:
        r = urlopen(Request(url, data=body, headers=headers, method=method), timeout=10)
        out = json.loads(r.read().decode()) if r.length and r.length > 0 else {}
        return out, r.status
    except HTTPError as e:
        body = e.read().decode() if e.fp else ""
        try:
            out = json.loads(body) if body else {}
        except json.JSONDecodeError:
            out = {"error": body or str(e)}
        return out, e.code
    except URLError as e:
        print(f"Connection error: {e}")
        return None, 0


def check(label: str, resp, code, expected=(200,)) -> bool:
    if code not in expected:
        print(f"   FAIL {label}: {code} {resp}")
        return False
    print(f"   OK {label}")
    return True


def main():
    global BASE
    ap = argparse.ArgumentParser()
    ap.add_argument("--base", default=BASE, help="Base URL (default: http://127.0.0.1:5050)")
    ap.add_argument("--year", type=int, default=2025)
    ap.add_argument("--month", type=int, default=1)
    args = ap.parse_args()
    BASE = args.base.rstrip("/")
    y, m = args.year, args.month

    results = []

    print("1. Login as admin@example.com ...")
    resp, code = req("POST", "/api/auth/login", {"email": "admin@example.com", "password": "admin123456"})
    if code != 200 or "access_token" not in (resp or {}):
        print(f"   FAIL {code} {resp}")
        sys.exit(1)
    token = resp["access_token"]
    print(f"   OK token obtained (role={resp.get('role')})")

    print("2. Fee preview (fixed 10%, 5000 investment, 2 platforms) ...")
    resp, code = req("POST", "/api/fees/preview", {"investment": 5000, "platform_count": 2}, token=token)
    ok = check("preview", resp, code)
    if ok and resp.get("fee") != 1500:
        print(f"   FAIL expected fee 1500, got {resp.get('fee')}")
        ok = False
    results.append(ok)

    print("3. Clients ...")
    resp, code = req("GET", "/api/clients", token=token)
    results.append(check(f"{len(resp or [])} clients", resp, code))
    clients = resp or []

    print(f"4. Billing matrix {y}-{m:02d} ...")
    resp, code = req("GET", f"/api/billing/matrix?year={y}&month={m}", token=token)
    results.append(check(f"{len((resp or {}).get('rows', []))} rows", resp, code))

    if clients:
        print("5. Save investment cell ...")
        resp, code = req(
            "POST",
            "/api/billing/matrix/save",
            {"year": y, "month": m, "client_id": clients[0]["id"], "field": "investment", "value": 5000},
            token=token,
        )
        results.append(check("investment saved", resp, code, expected=(200, 403)))

    print(f"6. Period status {y}-{m:02d} ...")
    resp, code = req("GET", f"/api/periods/status/{y}/{m}", token=token)
    results.append(check(f"is_closed={(resp or {}).get('is_closed')}", resp, code))

    print(f"7. P&L summary {y} ...")
    resp, code = req("GET", f"/api/pl/summary/{y}", token=token)
    results.append(check("summary", resp, code))

    print(f"8. Dashboard KPIs {y} ...")
    resp, code = req("GET", f"/api/dashboard/kpis/{y}", token=token)
    results.append(check(f"revenue={(resp or {}).get('revenue')}", resp, code))

    print("9. Bad period is rejected ...")
    resp, code = req("GET", "/api/billing/matrix?year=2025&month=13", token=token)
    results.append(check("400 on month 13", resp, code, expected=(400,)))

    ok, fail = results.count(True), results.count(False)
    print(f"\nDone: {ok} passed, {fail} failed")
    sys.exit(1 if fail else 0)


if __name__ == "__main__":
    main()
