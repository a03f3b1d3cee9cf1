"""
CLI 主入口 - 使用 Click 框架
CLI main entry - using Click framework.

replay 命令把 JSON Lines 文件中的事件通过内存传输回放给一个应用，
并打印应用发出的所有出站消息。
The replay command feeds the events of a JSON Lines file to an application
through the memory transport and prints every outbound message it produced.
"""

from __future__ import annotations

import asyncio
import importlib
import inspect
import json
import logging
import sys
from typing import Any

import click

from AetherRealtime.kernel.lifecycle import HookName

logger = logging.getLogger("AetherRealtime.cli")


def load_app(target: str) -> Any:
    """
    加载 "module:attr" 指向的 Realtime 实例或工厂函数
    Load the Realtime instance or factory named by "module:attr".
    """
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise click.BadParameter("expected MODULE:ATTRIBUTE", param_hint="APP")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise click.BadParameter(f"cannot import {module_name}: {exc}", param_hint="APP") from exc
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise click.BadParameter(f"{module_name} has no attribute {attr}", param_hint="APP") from exc


def read_events(stream: Any) -> list[dict[str, Any]]:
    """读取 JSON Lines 事件，跳过空行和注释 / Read JSON Lines events, skipping blanks and comments."""
    events = []
    for line_no, line in enumerate(stream, start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            event = json.loads(line)
        except json.JSONDecodeError as exc:
            raise click.ClickException(f"line {line_no}: invalid JSON ({exc.msg})") from exc
        if not isinstance(event, dict) or not event.get("type"):
            raise click.ClickException(f'line {line_no}: an event needs a "type"')
        events.append(event)
    return events


async def replay_events(app_target: Any, events: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    回放事件并收集出站消息
    Replay events and collect outbound messages.
    """
    from AetherRealtime.gateway.adapters.memory_adapter import MemoryTransport
    from AetherRealtime.kernel.app import Realtime

    app = app_target
    if not isinstance(app, Realtime) and callable(app):
        app = app()
        if inspect.isawaitable(app):
            app = await app
    if not isinstance(app, Realtime):
        raise click.ClickException("APP must be a Realtime instance or a factory returning one")

    transport = MemoryTransport()
    app.adapter(transport)
    await app.start()
    try:
        for event in events:
            await transport.simulate_incoming(
                event["type"],
                event.get("payload"),
                channel=event.get("channel"),
                application_id=event.get("application_id"),
                client_id=event.get("client_id"),
                emitter_client_id=event.get("emitter_client_id"),
            )
        await app.wait_idle()
    finally:
        await app.stop()

    return [
        {"kind": msg.kind, "type": msg.type, "payload": msg.payload}
        for msg in transport.get_sent_messages()
    ]


@click.group()
def cli() -> None:
    """AetherRealtime - 传输无关的实时事件调度核心"""
    pass


@cli.command()
@click.argument("app")
@click.argument("events_file", type=click.File("r", encoding="utf-8"))
@click.option("--debug", is_flag=True, help="输出详细诊断日志 / Verbose diagnostic logging")
@click.option("--log-file", default=None, help="日志文件路径 / Log file path")
def replay(app: str, events_file: Any, debug: bool, log_file: str | None) -> None:
    """回放事件文件 / Replay an events file through APP (module:attr)."""
    from AetherRealtime.kernel.logging import setup_logging

    setup_logging("DEBUG" if debug else "WARNING", log_file=log_file)

    target = load_app(app)
    events = read_events(events_file)

    try:
        outbound = asyncio.run(replay_events(target, events))
    except click.ClickException:
        raise
    except Exception:
        logger.exception("回放失败")
        sys.exit(1)

    for message in outbound:
        click.echo(json.dumps(message, ensure_ascii=False, default=str))


@cli.command()
def hooks() -> None:
    """列出生命周期钩子名 / List lifecycle hook names."""
    for name in HookName.names():
        click.echo(name)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
