"""SQLAlchemy implementation of IPreferenceRepository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from notifications.infrastructure.models import CustomerNotificationPreferenceModel

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from notifications.domain.value_objects import (
        CustomerNotificationPreference,
        NotificationChannel,
    )

_Pref = CustomerNotificationPreferenceModel


class PreferenceRepository:
    """Reads and writes customer notification preferences.

    Each call opens its own session from the factory.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_enabled(
        self,
        tenant_id: str,
        customer_id: str,
        event_type: str,
    ) -> list[CustomerNotificationPreference]:
        stmt = (
            select(_Pref)
            .where(_Pref.tenant_id == tenant_id)
            .where(_Pref.customer_id == customer_id)
            .where(_Pref.event_type == event_type)
            .where(_Pref.enabled.is_(True))
            .order_by(_Pref.channel)
        )
        async with self._session_factory() as session:
            models = (await session.execute(stmt)).scalars().all()
            return [model.to_value_object() for model in models]

    async def get(
        self,
        tenant_id: str,
        customer_id: str,
        event_type: str,
        channel: NotificationChannel,
    ) -> CustomerNotificationPreference | None:
        async with self._session_factory() as session:
            model = await self._find(session, tenant_id, customer_id, event_type, channel)
            return model.to_value_object() if model else None

    async def save(self, preference: CustomerNotificationPreference) -> None:
        """Insert the preference or update the row with the same key."""
        async with self._session_factory() as session, session.begin():
            model = await self._find(
                session,
                preference.tenant_id,
                preference.customer_id,
                preference.event_type,
                preference.channel,
            )
            if model is None:
                model = _Pref(
                    tenant_id=preference.tenant_id,
                    customer_id=preference.customer_id,
                    event_type=preference.event_type,
                    channel=preference.channel.value,
                )
                session.add(model)
            model.apply(preference)

    async def _find(
        self,
        session: AsyncSession,
        tenant_id: str,
        customer_id: str,
        event_type: str,
        channel: NotificationChannel,
    ) -> CustomerNotificationPreferenceModel | None:
        stmt = (
            select(_Pref)
            .where(_Pref.tenant_id == tenant_id)
            .where(_Pref.customer_id == customer_id)
            .where(_Pref.event_type == event_type)
            .where(_Pref.channel == channel.value)
        )
        return (await session.execute(stmt)).scalar_one_or_none()
