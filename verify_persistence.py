import time
import subprocess
import httpx
import sys
import os
import signal

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/v1"
ACCOUNT = "persist-check"

def wait_for_server(retries=10, delay=2):
    url = f"{BASE_URL}/health"
    print(f"Waiting for server at {url}...")
    for i in range(retries):
        try:
            resp = httpx.get(url)
            if resp.status_code == 200:
                print("✅ Server is up!")
                return True
        except httpx.ConnectError:
            pass
        time.sleep(delay)
    print("❌ Server failed to start.")
    return False

def start_server(env=None):
    return subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "bookkeeper.app.main:app", "--host", "127.0.0.1", "--port", "8000"],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env or os.environ.copy()
    )

def stop_server(proc):
    proc.send_signal(signal.SIGTERM)
    proc.wait()

def ledger_balances():
    resp = httpx.get(f"{BASE_URL}{API_PREFIX}/ledger", params={"account_id": ACCOUNT})
    resp.raise_for_status()
    return [row["closing_balance"] for row in resp.json()]

def run_verification():
    # 1. Start Server (First Run)
    print("\n--- [Step 1] Starting Server (Initial) ---")
    proc = start_server({**os.environ, "DB_ECHO": "True"})

    try:
        if not wait_for_server():
            server_logs = proc.communicate(timeout=2)
            print("Server Stdout:", server_logs[0].decode())
            print("Server Stderr:", server_logs[1].decode())
            raise Exception("Server start failed")

        # 2. Post entries out of date order
        print("\n--- [Step 2] Posting Ledger Entries (Persistence Test) ---")
        existing = ledger_balances()
        if existing:
            print(f"⚠️ Account already has {len(existing)} entries (persistence working from previous run?)")
        else:
            for payload in (
                {"account_id": ACCOUNT, "entry_date": "2024-01-01", "credit": 1000},
                {"account_id": ACCOUNT, "entry_date": "2024-01-05", "debit": 400},
                {"account_id": ACCOUNT, "entry_date": "2024-01-03", "credit": 200},
            ):
                resp = httpx.post(f"{BASE_URL}{API_PREFIX}/ledger", json=payload)
                if resp.status_code != 201:
                    print(f"❌ Entry Failed: {resp.status_code} {resp.text}")
                    raise Exception("Entry creation failed")
            print("✅ Entries Posted")
        before = ledger_balances()
        print(f"Balances: {before}")

    finally:
        print("\n--- [Step 3] Stopping Server ---")
        stop_server(proc)

    time.sleep(2) # Wait for port release

    # 3. Restart Server
    print("\n--- [Step 4] Restarting Server (Verification) ---")
    proc2 = start_server()

    try:
        if not wait_for_server():
            raise Exception("Server restart failed")

        # 4. Compare balances
        print("\n--- [Step 5] Reading Balances (Post-Restart) ---")
        after = ledger_balances()
        if after == before and after[:3] == [1000.0, 1200.0, 800.0]:
            print(f"✅ Balances Persisted: {after}")
        else:
            print(f"❌ Balance Mismatch (Persistence Issue?): before={before} after={after}")
            raise Exception("Balances changed after restart")

        # 5. Recompute must not change a consistent account
        print("\n--- [Step 6] Recomputing Account ---")
        resp = httpx.post(f"{BASE_URL}{API_PREFIX}/ledger/accounts/{ACCOUNT}/recompute")
        if resp.status_code == 200 and ledger_balances() == after:
            print("✅ Recompute Idempotent")
            print(resp.json())
        else:
            print(f"❌ Recompute Check Failed: {resp.status_code} {resp.text}")

    finally:
        print("\n--- [Step 7] Stopping Server ---")
        stop_server(proc2)

if __name__ == "__main__":
    run_verification()
