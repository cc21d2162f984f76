import asyncio

from nyne_client.config import parse_config
from nyne_client.errors import NyneError
from nyne_client.nyne_client import NyneClient
from nyne_server import NyneServer


async def status_changed(result):
    print(f"{result.kind.value} status changed to: {result.status}")
    print(f"Elapsed time: {result.elapsed_time:.6f}s")


async def main():
    PORT = 8000
    server = NyneServer(api_key="demo-key", api_secret="demo-secret", pending_polls=2)
    await server.start(port=PORT)
    print(f"Server started on http://localhost:{PORT}")

    config = parse_config(
        {"apiKey": "demo-key", "apiSecret": "demo-secret", "debug": True}
    )
    client = NyneClient(
        config, base_url=f"http://localhost:{PORT}", on_status_change=status_changed
    )

    try:
        enrichment, interests = await asyncio.gather(
            client.enrich_person(linkedin_url="https://linkedin.com/in/example"),
            client.get_person_interests(
                social_media_url="https://linkedin.com/in/example"
            ),
        )
        print(f"Enrichment: {enrichment.status} {enrichment.result}")
        print(f"Interests: {interests.status} {interests.result}")

        usage = await client.get_usage()
        print(f"Usage: {usage.data}")
    except TimeoutError as e:
        print(f"Polling timed out: {e}")
    except NyneError as e:
        print(f"Error occurred: {e}")
    finally:
        await server.stop()


if __name__ == "__main__":
    asyncio.run(main())
