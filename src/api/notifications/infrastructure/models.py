"""SQLAlchemy ORM models for notification templates and preferences."""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import Boolean, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin
from notifications.domain.value_objects import (
    CustomerNotificationPreference,
    NotificationChannel,
    NotificationTemplate,
)


class NotificationTemplateModel(Base, TimestampMixin):
    """ORM model for the notification_templates table.

    One row per (tenant, event type, channel, locale).
    """

    __tablename__ = "notification_templates"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "event_type",
            "channel",
            "locale",
            name="uq_notification_templates_key",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False)
    event_type: Mapped[str] = mapped_column(String(255), nullable=False)
    channel: Mapped[str] = mapped_column(String(32), nullable=False)
    locale: Mapped[str] = mapped_column(String(16), nullable=False)
    subject: Mapped[str | None] = mapped_column(Text, nullable=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    html_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_value_object(self) -> NotificationTemplate:
        return NotificationTemplate(
            tenant_id=self.tenant_id,
            event_type=self.event_type,
            channel=NotificationChannel(self.channel),
            locale=self.locale,
            subject=self.subject,
            body=self.body,
            html_body=self.html_body,
            is_active=self.is_active,
        )

    def apply(self, template: NotificationTemplate) -> None:
        """Copy the mutable fields of a template onto this row."""
        self.subject = template.subject
        self.body = template.body
        self.html_body = template.html_body
        self.is_active = template.is_active

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<NotificationTemplateModel(tenant_id={self.tenant_id}, "
            f"event_type={self.event_type}, channel={self.channel}, "
            f"locale={self.locale})>"
        )


class CustomerNotificationPreferenceModel(Base, TimestampMixin):
    """ORM model for the customer_notification_preferences table.

    One row per (tenant, customer, event type, channel).
    """

    __tablename__ = "customer_notification_preferences"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "customer_id",
            "event_type",
            "channel",
            name="uq_customer_notification_preferences_key",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_id: Mapped[str] = mapped_column(String(255), nullable=False)
    event_type: Mapped[str] = mapped_column(String(255), nullable=False)
    channel: Mapped[str] = mapped_column(String(32), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    locale: Mapped[str] = mapped_column(String(16), nullable=False, default="en")
    contact_info: Mapped[str | None] = mapped_column(String(320), nullable=True)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def to_value_object(self) -> CustomerNotificationPreference:
        return CustomerNotificationPreference(
            tenant_id=self.tenant_id,
            customer_id=self.customer_id,
            event_type=self.event_type,
            channel=NotificationChannel(self.channel),
            enabled=self.enabled,
            locale=self.locale,
            contact_info=self.contact_info,
            verified=self.verified,
        )

    def apply(self, preference: CustomerNotificationPreference) -> None:
        """Copy the mutable fields of a preference onto this row."""
        self.enabled = preference.enabled
        self.locale = preference.locale
        self.contact_info = preference.contact_info
        self.verified = preference.verified

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<CustomerNotificationPreferenceModel(customer_id={self.customer_id}, "
            f"event_type={self.event_type}, channel={self.channel}, "
            f"enabled={self.enabled})>"
        )
