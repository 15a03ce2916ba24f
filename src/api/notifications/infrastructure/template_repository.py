"""SQLAlchemy implementation of ITemplateRepository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from notifications.infrastructure.models import NotificationTemplateModel

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from notifications.domain.value_objects import (
        NotificationChannel,
        NotificationTemplate,
    )


class TemplateRepository:
    """Stores notification templates.

    Templates are read on every delivery, long after any request session is
    gone, so each call opens its own short-lived session.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_active(
        self,
        tenant_id: str,
        event_type: str,
        channel: NotificationChannel,
        locale: str,
    ) -> NotificationTemplate | None:
        stmt = (
            select(NotificationTemplateModel)
            .where(NotificationTemplateModel.tenant_id == tenant_id)
            .where(NotificationTemplateModel.event_type == event_type)
            .where(NotificationTemplateModel.channel == channel.value)
            .where(NotificationTemplateModel.locale == locale)
            .where(NotificationTemplateModel.is_active.is_(True))
        )
        async with self._session_factory() as session:
            model = (await session.execute(stmt)).scalar_one_or_none()
            return model.to_value_object() if model else None

    async def save(self, template: NotificationTemplate) -> None:
        """Insert the template or update the row with the same key."""
        stmt = (
            select(NotificationTemplateModel)
            .where(NotificationTemplateModel.tenant_id == template.tenant_id)
            .where(NotificationTemplateModel.event_type == template.event_type)
            .where(NotificationTemplateModel.channel == template.channel.value)
            .where(NotificationTemplateModel.locale == template.locale)
        )
        async with self._session_factory() as session, session.begin():
            model = (await session.execute(stmt)).scalar_one_or_none()
            if model is None:
                model = NotificationTemplateModel(
                    tenant_id=template.tenant_id,
                    event_type=template.event_type,
                    channel=template.channel.value,
                    locale=template.locale,
                )
                session.add(model)
            model.apply(template)
