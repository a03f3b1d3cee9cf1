"""Application loaded by the CLI replay tests."""

from __future__ import annotations

from AetherRealtime import create_realtime


async def _echo(ctx):
    await ctx.send("echo", ctx.payload)


async def _announce(ctx):
    await ctx.broadcast("announced", {"from": ctx.remote_client})


def build_app():
    return create_realtime().register_routes(
        [
            {"event": "echo", "handler": _echo},
            {"event": "announce", "handler": _announce},
        ]
    )


app = build_app()
