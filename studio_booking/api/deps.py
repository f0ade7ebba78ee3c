from fastapi import Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.core.db import get_session
from studio_booking.models.provider import ProviderSettings
from studio_booking.services.provider_service import get_provider_settings

__all__ = ["get_session", "get_provider", "provider_id_path"]


def provider_id_path(provider_id: str = Path(..., min_length=1, max_length=64)) -> str:
    return provider_id.strip()


async def get_provider(
    provider_id: str = Depends(provider_id_path),
    session: AsyncSession = Depends(get_session),
) -> ProviderSettings:
    """Provider settings row; unknown providers surface as ProviderNotFound (404)."""
    return await get_provider_settings(session, provider_id)
