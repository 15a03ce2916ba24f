"""Locale-aware template lookup and rendering."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from notifications.application.observability import DefaultNotificationProbe
from notifications.domain.rendering import render_template, validate_template

if TYPE_CHECKING:
    from notifications.application.observability import NotificationProbe
    from notifications.domain.value_objects import (
        NotificationChannel,
        NotificationTemplate,
    )
    from notifications.ports.repositories import ITemplateRepository

DEFAULT_LOCALE = "en"


def locale_candidates(locale: str | None, default_locale: str = DEFAULT_LOCALE) -> list[str]:
    """Locales to try, most specific first.

    "fr-CA" yields ["fr-CA", "fr", "en"]; duplicates are dropped.
    """
    candidates: list[str] = []
    if locale:
        candidates.append(locale)
        language = locale.replace("_", "-").split("-", 1)[0]
        candidates.append(language)
    candidates.append(default_locale)
    return list(dict.fromkeys(c for c in candidates if c))


class TemplateResolver:
    """Finds, renders and validates notification templates.

    A missing template after locale fallback is returned as None; callers
    treat it as a configuration error rather than a transient failure.
    """

    def __init__(
        self,
        repository: ITemplateRepository,
        default_locale: str = DEFAULT_LOCALE,
        probe: NotificationProbe | None = None,
    ) -> None:
        self._repository = repository
        self._default_locale = default_locale
        self._probe = probe or DefaultNotificationProbe()

    @property
    def default_locale(self) -> str:
        return self._default_locale

    async def find_template(
        self,
        tenant_id: str,
        event_type: str,
        channel: NotificationChannel,
        locale: str | None,
    ) -> NotificationTemplate | None:
        """Find the active template, falling back through less specific locales.

        Args:
            tenant_id: Owning tenant
            event_type: Event tag
            channel: Delivery channel
            locale: Requested locale (e.g. "fr-CA"); None uses the default

        Returns:
            The first active template along the fallback chain, or None
        """
        for candidate in locale_candidates(locale, self._default_locale):
            template = await self._repository.find_active(
                tenant_id, event_type, channel, candidate
            )
            if template is not None:
                if locale and candidate != locale:
                    self._probe.template_fallback_used(locale, candidate)
                return template

        self._probe.template_missing(event_type, channel.value, locale or "")
        return None

    def render(
        self,
        template_body: str | None,
        variables: Mapping[str, Any],
        escape_html: bool = False,
    ) -> str:
        """Substitute variables into a template body.

        Missing variables render as empty strings.

        Raises:
            TemplateSyntaxError: The stored body cannot be parsed
        """
        if not template_body:
            return ""
        return render_template(template_body, variables, escape_html=escape_html)

    def validate(self, template_body: str) -> None:
        """Reject malformed placeholder syntax.

        Raises:
            TemplateSyntaxError: If the body is malformed
        """
        validate_template(template_body)

    async def register_template(self, template: NotificationTemplate) -> None:
        """Validate every part of a template and save it.

        Raises:
            TemplateSyntaxError: If the subject, body or HTML body is malformed
        """
        for part in (template.subject, template.body, template.html_body):
            if part:
                self.validate(part)
        await self._repository.save(template)
