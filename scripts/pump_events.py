"""Synthetic customer and admin traffic against the print shop API.

Customers register a phone, upload one to three small PDFs, place an order
and then either leave it alone, cancel it or remove one of its files. An admin
worker logs in with the passcode and moves random orders through payment and
completion. Knobs:

* HTTP_BASE_URL: base URL of the API, e.g. http://127.0.0.1:8000
* HTTP_WORKERS: number of customer threads (default 2)
* HTTP_SLEEP: pause between customer actions in seconds (default 0.3)
* ADMIN_PASSCODE: passcode for the admin worker; unset disables it
"""
from __future__ import annotations

import os
import random
import threading
import time
from typing import Dict, List
from urllib.parse import quote, urljoin

import requests

HTTP_BASE_URL = os.getenv("HTTP_BASE_URL", "http://127.0.0.1:8000")
HTTP_WORKERS = int(os.getenv("HTTP_WORKERS", "2"))
HTTP_DELAY = float(os.getenv("HTTP_SLEEP", "0.3"))
ADMIN_PASSCODE = os.getenv("ADMIN_PASSCODE")

# Minimal one-page PDF; the server only checks type and size.
FAKE_PDF = b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n"

LIVE_LOCK = threading.Lock()


def api(path: str) -> str:
    return urljoin(HTTP_BASE_URL, f"/api/{path}")


def rand_phone() -> str:
    return "9" + "".join(random.choices("0123456789", k=9))


def place_order(session: requests.Session) -> Dict | None:
    phone = rand_phone()
    token = session.post(api("token"), json={"phone": phone}, timeout=5).json()["tokenId"]

    count = random.randint(1, 3)
    upload = session.post(
        api("upload"),
        data={"phone": phone, "pages": [str(random.randint(1, 20)) for _ in range(count)]},
        files=[("files", (f"doc{i}.pdf", FAKE_PDF, "application/pdf")) for i in range(count)],
        timeout=10,
    ).json()
    if not upload.get("success"):
        print(f"[customer] upload failed: {upload.get('error')}")
        return None

    files = upload["files"]
    body = {
        "name": f"Customer {phone[-4:]}",
        "phone": phone,
        "copies": random.randint(1, 3),
        "pages": sum(f["pages"] for f in files),
        "files": files,
        "isNewUser": False,
        "tokenId": token,
    }
    created = session.post(api("orders"), json=body, timeout=5).json()
    if not created.get("success"):
        print(f"[customer] order failed: {created.get('code')} {created.get('error')}")
        return None
    return {"id": created["orderId"], "files": [f["name"] for f in files]}


def customer_worker(name: str, live_orders: Dict[str, Dict], stop: threading.Event) -> None:
    session = requests.Session()
    while not stop.is_set():
        try:
            roll = random.random()
            with LIVE_LOCK:
                order_ids = list(live_orders.keys())
            if roll < 0.5 or not order_ids:
                order = place_order(session)
                if order:
                    with LIVE_LOCK:
                        live_orders[order["id"]] = order
                    print(f"[{name}] placed {order['id']} with {len(order['files'])} file(s)")
            elif roll < 0.75:
                order_id = random.choice(order_ids)
                res = session.post(api(f"orders/{order_id}/cancel"), timeout=5).json()
                print(f"[{name}] cancel {order_id}: {res.get('code') or 'ok'}")
            else:
                order_id = random.choice(order_ids)
                with LIVE_LOCK:
                    names = live_orders[order_id]["files"]
                    file_name = names.pop() if names else None
                if file_name:
                    res = session.delete(
                        api(f"orders/{order_id}/files/{quote(file_name)}"), timeout=5
                    ).json()
                    print(f"[{name}] remove {file_name} from {order_id}: "
                          f"{'cancelled' if res.get('orderCancelled') else res.get('code') or 'ok'}")
        except requests.RequestException as exc:
            print(f"[{name}] request error: {exc}")
        finally:
            time.sleep(HTTP_DELAY)


def admin_worker(live_orders: Dict[str, Dict], stop: threading.Event) -> None:
    session = requests.Session()
    login = session.post(api("admin/session"), json={"passcode": ADMIN_PASSCODE}, timeout=5)
    if login.status_code != 200:
        print(f"[admin] login failed: {login.text}")
        return
    while not stop.is_set():
        with LIVE_LOCK:
            order_ids = list(live_orders.keys())
        if order_ids:
            order_id = random.choice(order_ids)
            body = random.choice([
                {"paymentStatus": "PAID"},
                {"paymentStatus": "VERIFIED"},
                {"status": "COMPLETED", "paymentStatus": "VERIFIED"},
            ])
            try:
                res = session.patch(api(f"admin/orders/{order_id}"), json=body, timeout=5).json()
                print(f"[admin] {order_id} {body}: {res.get('code') or 'ok'}")
            except requests.RequestException as exc:
                print(f"[admin] request error: {exc}")
        time.sleep(HTTP_DELAY * 3)


def main() -> None:
    live_orders: Dict[str, Dict] = {}
    stop = threading.Event()
    threads: List[threading.Thread] = []

    for idx in range(HTTP_WORKERS):
        thread = threading.Thread(
            target=customer_worker,
            name=f"customer-{idx}",
            args=(f"c{idx}", live_orders, stop),
            daemon=True,
        )
        thread.start()
        threads.append(thread)
    if ADMIN_PASSCODE:
        thread = threading.Thread(target=admin_worker, args=(live_orders, stop), daemon=True)
        thread.start()
        threads.append(thread)

    print(f"[info] {len(threads)} worker(s) against {HTTP_BASE_URL}. Ctrl+C to stop.")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n[info] Stopped by user")
    finally:
        stop.set()
        for thread in threads:
            thread.join(timeout=1.0)


if __name__ == "__main__":
    main()
