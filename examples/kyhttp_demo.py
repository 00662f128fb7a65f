#!/usr/bin/env python3
"""
Demonstration of the kyhttp client against httpbin.org.

    python examples/kyhttp_demo.py
"""

import asyncio

from kyhttp import ClientConfig, KyClient, LoggingConfig, RetriesExhausted


async def demo_single_requests(client: KyClient) -> None:
    print("\n=== Single Requests ===")

    data = await client.get("/get").query({"a": 1, "b": "test"}).send_json()
    print(f"✅ Query echoed: {data['args']}")

    data = await client.post("/post").json({"name": "kyhttp", "speed": "fast"}).send_json()
    print(f"✅ JSON body echoed: {data['json']}")

    attempts = 0

    def count(response):
        nonlocal attempts
        attempts += 1

    try:
        await client.get("/status/500").retry(2).after_response(count).send()
    except RetriesExhausted as e:
        print(f"✅ Gave up as expected: {e.message} ({attempts} attempts)")


async def demo_batch(client: KyClient) -> None:
    print("\n=== Batch ===")

    client.get("/get").add_to_batch()
    client.get("/uuid").add_to_batch()
    client.get("/status/503").retry(1).add_to_batch()

    for response in await client.send_batch(ordered=True):
        url = response.request.target_url if response.request else "?"
        print(f"  [{response.index}] {response.status} {url} after {response.attempts} attempt(s)")


async def main() -> None:
    config = ClientConfig(
        base_url="https://httpbin.org",
        logging=LoggingConfig(level="DEBUG", configure=True),
    )
    async with KyClient(config) as client:
        await demo_single_requests(client)
        await demo_batch(client)


if __name__ == "__main__":
    asyncio.run(main())
