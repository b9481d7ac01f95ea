"""Concurrent redirect burst against a running shortlink service.

Creates one link, fires a burst of concurrent redirects at it, then checks
that the recorded click count grew by exactly the number of successful
redirects.

Env knobs
---------
BURST_BASE_URL       Base URL of the service (default: http://localhost:3000)
BURST_REQUESTS       Total redirects to send (default: 1000)
BURST_CONCURRENCY    Concurrent redirect coroutines (default: 50)
BURST_TIMEOUT_SECONDS Per-request timeout (default: 5)
"""

import asyncio
import os
import random
import string
import sys
import time

import httpx


def _random_url() -> str:
    slug = "".join(random.choices(string.ascii_lowercase, k=8))
    return f"https://burst-target-{slug}.example.com/path"


async def _redirect_worker(
    client: httpx.AsyncClient,
    base_url: str,
    code: str,
    queue: asyncio.Queue[None],
    counts: dict[str, int],
) -> None:
    while True:
        try:
            queue.get_nowait()
        except asyncio.QueueEmpty:
            return
        try:
            response = await client.get(f"{base_url}/{code}")
            if response.status_code == 302:
                counts["ok"] += 1
            else:
                counts["errors"] += 1
        except httpx.HTTPError:
            counts["errors"] += 1


async def main() -> int:
    base_url = os.getenv("BURST_BASE_URL", "http://localhost:3000").rstrip("/")
    total = int(os.getenv("BURST_REQUESTS", "1000"))
    concurrency = int(os.getenv("BURST_CONCURRENCY", "50"))
    timeout_s = float(os.getenv("BURST_TIMEOUT_SECONDS", "5"))

    limits = httpx.Limits(max_keepalive_connections=concurrency, max_connections=concurrency)
    async with httpx.AsyncClient(timeout=timeout_s, limits=limits, follow_redirects=False) as client:
        created = await client.post(f"{base_url}/api/links", json={"long_url": _random_url()})
        created.raise_for_status()
        code = created.json()["code"]
        print(f"[setup] created {code}")

        queue: asyncio.Queue[None] = asyncio.Queue()
        for _ in range(total):
            queue.put_nowait(None)
        counts = {"ok": 0, "errors": 0}

        start = time.perf_counter()
        await asyncio.gather(
            *(_redirect_worker(client, base_url, code, queue, counts) for _ in range(concurrency))
        )
        elapsed = time.perf_counter() - start

        stats = await client.get(f"{base_url}/api/links/{code}")
        stats.raise_for_status()
        recorded = stats.json()["click_count"]

    print(f"  redirects_ok     = {counts['ok']}")
    print(f"  errors           = {counts['errors']}")
    print(f"  rps              = {total / elapsed:.2f}")
    print(f"  recorded_clicks  = {recorded}")

    if recorded != counts["ok"]:
        print(f"[FAIL] lost updates: expected {counts['ok']}, recorded {recorded}")
        return 1
    print("[OK] click count matches successful redirects")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
