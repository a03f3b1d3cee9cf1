"""
守卫求值器 - 在处理器之前执行授权判断
Guard evaluator - runs authorization predicates before the handler.

守卫只做判断，不修改上下文，也不调用 next。
Guards only evaluate; they never mutate the context or call next.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from AetherRealtime.message.context import EventContext

logger = logging.getLogger(__name__)

NO_REASON = "no reason given"


@dataclass(frozen=True)
class GuardResult:
    """
    守卫结果
    Guard result.

    可以直接作为布尔值使用。
    Usable directly as a boolean.
    """

    allowed: bool
    reason: str | None = None
    # 拒绝本条消息的守卫索引
    guard_index: int | None = None

    def __bool__(self) -> bool:
        return self.allowed


GuardOutcome = Union[bool, GuardResult, Mapping[str, Any], None]
Guard = Callable[["EventContext"], Union[GuardOutcome, Awaitable[GuardOutcome]]]

ALLOWED = GuardResult(allowed=True)


def _interpret(outcome: Any) -> tuple[bool, str | None]:
    """将守卫返回值统一为 (allowed, reason) / Normalize a guard return value."""
    if isinstance(outcome, bool):
        return outcome, None
    if isinstance(outcome, GuardResult):
        return outcome.allowed, outcome.reason
    if isinstance(outcome, Mapping):
        return bool(outcome.get("allowed")), outcome.get("reason")
    if hasattr(outcome, "allowed"):
        return bool(outcome.allowed), getattr(outcome, "reason", None)
    return bool(outcome), None


class GuardEvaluator:
    """
    守卫求值器 - 按顺序执行守卫，首个拒绝即停止
    Guard evaluator - runs guards in order and stops at the first rejection.
    """

    async def evaluate(self, guards: Sequence[Guard], ctx: EventContext) -> GuardResult:
        for index, guard in enumerate(guards):
            try:
                outcome = guard(ctx)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
                allowed, reason = _interpret(outcome)
            except Exception as exc:
                logger.exception("守卫 #%d 在处理事件 %s 时出错", index, ctx.type)
                return GuardResult(allowed=False, reason=f"guard raised: {exc!r}", guard_index=index)

            if not allowed:
                reason = reason or NO_REASON
                logger.debug("守卫 #%d 拒绝了事件 %s: %s", index, ctx.type, reason)
                return GuardResult(allowed=False, reason=reason, guard_index=index)

        return ALLOWED
