"""Unit tests for notification value objects."""

from notifications.domain.value_objects import (
    ChannelDeliveryResult,
    CustomerNotificationPreference,
    DeliveryStatus,
    EventDeliveryReport,
    NotificationChannel,
    NotificationResponse,
)


def _result(success: bool, retryable: bool = True, **kwargs) -> ChannelDeliveryResult:
    return ChannelDeliveryResult(
        channel=kwargs.pop("channel", NotificationChannel.EMAIL),
        recipient="ann@example.com",
        success=success,
        retryable=retryable,
        **kwargs,
    )


class TestDeliveryStatus:
    def test_success_statuses(self):
        assert DeliveryStatus.SENT.is_success
        assert DeliveryStatus.DELIVERED.is_success
        assert not DeliveryStatus.FAILED.is_success

    def test_permanent_failures(self):
        assert DeliveryStatus.BOUNCED.is_permanent_failure
        assert DeliveryStatus.REJECTED.is_permanent_failure
        assert not DeliveryStatus.FAILED.is_permanent_failure


class TestNotificationResponse:
    def test_sent(self):
        response = NotificationResponse.sent("msg-1")

        assert response.is_success
        assert response.provider_message_id == "msg-1"

    def test_failed(self):
        response = NotificationResponse.failed(
            "mailbox full", error_code="552", status=DeliveryStatus.BOUNCED
        )

        assert not response.is_success
        assert response.status is DeliveryStatus.BOUNCED
        assert response.error_code == "552"


class TestCustomerNotificationPreference:
    def test_blank_contact_is_missing(self):
        preference = CustomerNotificationPreference(
            tenant_id="t",
            customer_id="c",
            event_type="ORDER_PLACED",
            channel=NotificationChannel.SMS,
            contact_info="   ",
        )

        assert not preference.has_contact

    def test_only_email_uses_subject(self):
        assert NotificationChannel.EMAIL.uses_subject
        assert not NotificationChannel.SMS.uses_subject


class TestEventDeliveryReport:
    """Tests for aggregating per-channel outcomes."""

    def _report(self, *results, **kwargs) -> EventDeliveryReport:
        return EventDeliveryReport(
            event_id="e1",
            tenant_id="t",
            event_type="ORDER_PLACED",
            results=tuple(results),
            **kwargs,
        )

    def test_no_channels_is_delivered(self):
        report = self._report()

        assert report.delivered
        assert report.failure_message is None

    def test_all_success_is_delivered(self):
        assert self._report(_result(True), _result(True)).delivered

    def test_partial_failure_is_not_delivered(self):
        report = self._report(
            _result(True),
            _result(
                False,
                channel=NotificationChannel.SMS,
                error_code="DELIVERY_FAILED",
                error_message="timeout",
            ),
        )

        assert not report.delivered
        assert not report.has_non_retryable_failure
        assert report.failure_message == "SMS: timeout"
        assert report.failure_code == "DELIVERY_FAILED"

    def test_any_non_retryable_failure_is_reported(self):
        report = self._report(
            _result(False, retryable=True, error_code="DELIVERY_FAILED"),
            _result(False, retryable=False, error_code="TEMPLATE_NOT_FOUND"),
        )

        assert report.has_non_retryable_failure
        assert report.failure_code == "TEMPLATE_NOT_FOUND"

    def test_first_of_several_non_retryable_failures_is_reported(self):
        report = self._report(
            _result(False, retryable=False, error_code="MISSING_CONTACT"),
            _result(False, retryable=False, error_code="TEMPLATE_NOT_FOUND"),
        )

        assert report.failure_code == "MISSING_CONTACT"

    def test_event_level_error(self):
        report = self._report(
            error_code="MISSING_CUSTOMER",
            error_message="no customer",
            retryable=False,
        )

        assert not report.delivered
        assert report.has_non_retryable_failure
        assert report.failure_message == "no customer"
        assert report.failure_code == "MISSING_CUSTOMER"
