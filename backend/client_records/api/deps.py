from typing import Annotated

from fastapi import Depends, Request

from client_records.core.config import Settings, settings
from client_records.core.pool import PoolManager


def get_pool_manager(request: Request) -> PoolManager:
    """The PoolManager owned by the application (created in the lifespan)."""
    return request.app.state.pool_manager


def get_settings() -> Settings:
    return settings


PoolDep = Annotated[PoolManager, Depends(get_pool_manager)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
