"""
规范化载荷 - 传输层交给核心的入站消息结构
Normalized payload - inbound message structure handed from transport to core.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NormalizedPayload(BaseModel):
    """
    规范化后的入站消息
    Normalized inbound message.

    字段同时接受 snake_case 与线上 camelCase 别名（clientId 等）。
    Fields accept snake_case as well as the wire camelCase aliases (clientId, ...).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # 发送方客户端 ID
    client_id: str | None = Field(default=None, alias="clientId")
    # 消息数据（对核心不透明）
    payload: Any = None
    # 通信频道
    channel: str | None = None
    # 应用 ID
    application_id: str | None = Field(default=None, alias="applicationId")
    # 原始发送方客户端 ID
    emitter_client_id: str | None = Field(default=None, alias="emitterClientId")

    @field_validator("client_id", "channel", "application_id", "emitter_client_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        # 传输层可能传入数字 ID
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @classmethod
    def coerce(cls, value: Any) -> NormalizedPayload:
        """
        将任意入站值转换为规范化载荷
        Coerce any inbound value into a normalized payload.

        带有 payload 键的映射按字段解析；其他值整体作为 payload。
        Mappings with a ``payload`` key are parsed field by field; any other
        value becomes the payload as a whole.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping) and "payload" in value:
            return cls.model_validate(dict(value))
        return cls(payload=value)
