"""Typed payload shapes sent by the shop.

Use with ``Context.payload_as()``:

    request = ctx.payload_as(ActionButtonRequest)
    ids = request.data.ids
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _ShopPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='allow')


class Source(_ShopPayload):
    url: str
    shop_id: str = Field(alias='shopId')
    app_version: str = Field(alias='appVersion')


class Meta(_ShopPayload):
    timestamp: int
    reference: str
    language: str


class ActionButtonData(_ShopPayload):
    ids: list[str] = Field(default_factory=list)
    entity: str
    action: str


class ActionButtonRequest(_ShopPayload):
    source: Source
    data: ActionButtonData
    meta: Meta


class BrowserAppModuleRequest(_ShopPayload):
    shop_id: str = Field(alias='shop-id')
    shop_url: str = Field(alias='shop-url')
    timestamp: str
    sw_version: str = Field(alias='sw-version')
    sw_context_language: str = Field(alias='sw-context-language')
    sw_user_language: str = Field(alias='sw-user-language')
