from __future__ import annotations

import asyncio

import aiohttp
from aiohttp import web


async def health_handler(request: web.Request) -> web.Response:
    return web.Response(text="OK")


def build_health_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/", health_handler)
    app.router.add_get("/health", health_handler)
    return app


async def start_health_server(*, host: str = "0.0.0.0", port: int = 3000) -> web.AppRunner:
    runner = web.AppRunner(build_health_app())
    await runner.setup()
    site = web.TCPSite(runner, host=host, port=int(port))
    await site.start()
    print(f"[Health] listening on {host}:{int(port)}")
    return runner


async def keepalive_loop(
    *,
    url: str,
    interval_seconds: int = 300,
    timeout_seconds: float = 10.0,
) -> None:
    if not url:
        return

    timeout = aiohttp.ClientTimeout(total=float(timeout_seconds))
    async with aiohttp.ClientSession(timeout=timeout) as session:
        while True:
            try:
                async with session.get(url) as resp:
                    if resp.status >= 400:
                        print(f"[Keepalive] ping {url} -> HTTP {resp.status}")
            except Exception as e:
                print(f"[Keepalive] ping error: {e}")
            await asyncio.sleep(max(60, int(interval_seconds)))
