"""
Dual-channel delivery of one-time codes.

``DeliveryGateway`` puts a code in front of the account holder by email
(Brevo) and SMS (Twilio). Each channel send reports ``ChannelResult``
instead of raising, and ``send_both`` runs the two concurrently and folds
them into a ``DeliveryResult``. Nothing is retried here.
"""

import asyncio
from dataclasses import dataclass

from vault.core.config import delivery_logger, settings
from vault.core.enums import DeliveryChannel, DeliveryStatus, OTPPurpose
from vault.core.services.brevo import BrevoService, Contact, ListContact
from vault.core.services.sms import TwilioService
from vault.core.services.template import Renderer
from vault.core.utils import mask_email, mask_phone, mask_otp, normalize_phone

EMAIL_NOT_CONFIGURED = "Email service not configured"
SMS_NOT_CONFIGURED = "SMS service not configured"

_DELIVERY_MESSAGES: dict[DeliveryStatus | DeliveryChannel, str] = {
    DeliveryStatus.FULL: "OTP sent successfully to both email and phone",
    DeliveryChannel.EMAIL: "OTP sent successfully to your email. SMS delivery failed.",
    DeliveryChannel.SMS: "OTP sent successfully to your phone. Email delivery failed.",
    DeliveryStatus.FAILED: "Failed to send OTP to both email and phone. Please try again later.",
}


@dataclass(frozen=True)
class ChannelResult:
    """Outcome of one channel send."""

    ok: bool
    detail: str


@dataclass(frozen=True)
class DeliveryResult:
    """Per-channel outcome of one dual-channel send."""

    email: ChannelResult
    sms: ChannelResult

    @property
    def status(self) -> DeliveryStatus:
        if self.email.ok and self.sms.ok:
            return DeliveryStatus.FULL
        if self.email.ok or self.sms.ok:
            return DeliveryStatus.DEGRADED
        return DeliveryStatus.FAILED

    @property
    def delivered(self) -> bool:
        """True when at least one channel placed the code."""
        return self.status != DeliveryStatus.FAILED

    @property
    def message(self) -> str:
        status = self.status
        if status == DeliveryStatus.DEGRADED:
            channel = DeliveryChannel.EMAIL if self.email.ok else DeliveryChannel.SMS
            return _DELIVERY_MESSAGES[channel]
        return _DELIVERY_MESSAGES[status]

    def channels(self) -> dict[str, bool]:
        return {
            DeliveryChannel.EMAIL.value: self.email.ok,
            DeliveryChannel.SMS.value: self.sms.ok,
        }


def sms_body(code: str, purpose: OTPPurpose) -> str:
    return (
        f"Your {settings.APP_NAME} OTP for {purpose.display_text}: {code}. "
        f"Valid for {settings.OTP_EXPIRY_MINUTES} minutes. Never share this code."
    )


class DeliveryGateway:
    _timeout: float = settings.DELIVERY_TIMEOUT_SECONDS

    @classmethod
    def set_timeout(cls, timeout: float) -> None:
        cls._timeout = timeout

    @classmethod
    async def _bounded(cls, channel: DeliveryChannel, send) -> ChannelResult:
        """
        Await one channel send under the per-channel timeout.

        Any exception, timeout included, becomes a failed ``ChannelResult``.
        """
        try:
            return await asyncio.wait_for(send, timeout=cls._timeout)
        except asyncio.TimeoutError:
            delivery_logger.warning(
                f"{channel.value} delivery timed out after {cls._timeout}s"
            )
            return ChannelResult(ok=False, detail=f"{channel.value} delivery timed out")
        except Exception as e:
            delivery_logger.error(
                f"{channel.value} delivery failed: {type(e).__name__}: {str(e)}"
            )
            return ChannelResult(ok=False, detail=f"{channel.value} delivery failed")

    @classmethod
    async def _send_email(
        cls, address: str, code: str, purpose: OTPPurpose
    ) -> ChannelResult:
        if not BrevoService.is_configured():
            delivery_logger.warning("Email channel skipped: Brevo not configured")
            return ChannelResult(ok=False, detail=EMAIL_NOT_CONFIGURED)

        if not Renderer.is_initialized():
            Renderer.initialize(settings.TEMPLATE_DIR)

        context = {
            "app_name": settings.APP_NAME,
            "otp_code": code,
            "purpose": purpose.display_text,
            "expiry_minutes": settings.OTP_EXPIRY_MINUTES,
        }
        html = await Renderer.render_template("otp_email.html", context)
        text = await Renderer.render_template("otp_email.txt", context)

        await BrevoService.send_transactional_email(
            subject=f"Your OTP for {purpose.display_text}",
            to=ListContact(to=[Contact(email=address)]),
            htmlContent=html,
            textContent=text,
        )
        delivery_logger.info(
            f"OTP {mask_otp(code)} emailed to {mask_email(address)}"
        )
        return ChannelResult(ok=True, detail="Email sent")

    @classmethod
    async def _send_sms(
        cls, phone: str, code: str, purpose: OTPPurpose
    ) -> ChannelResult:
        if not TwilioService.is_configured():
            delivery_logger.warning("SMS channel skipped: Twilio not configured")
            return ChannelResult(ok=False, detail=SMS_NOT_CONFIGURED)

        number = normalize_phone(phone)
        await TwilioService.send_sms(to=number, body=sms_body(code, purpose))
        delivery_logger.info(f"OTP {mask_otp(code)} texted to {mask_phone(number)}")
        return ChannelResult(ok=True, detail="SMS sent")

    @classmethod
    async def send_email(
        cls, address: str, code: str, purpose: OTPPurpose
    ) -> ChannelResult:
        """
        Email a code. Never raises.

        Args:
            address: Recipient email address.
            code: The clear code.
            purpose: What the code unlocks; shown in the subject and body.

        Returns:
            ChannelResult: ``ok`` plus a provider-agnostic detail.
        """
        return await cls._bounded(
            DeliveryChannel.EMAIL, cls._send_email(address, code, purpose)
        )

    @classmethod
    async def send_sms(
        cls, phone: str, code: str, purpose: OTPPurpose
    ) -> ChannelResult:
        """Text a code to ``phone`` after normalizing it to ``+<digits>``. Never raises."""
        return await cls._bounded(
            DeliveryChannel.SMS, cls._send_sms(phone, code, purpose)
        )

    @classmethod
    async def send_both(
        cls, email: str, phone: str, code: str, purpose: OTPPurpose
    ) -> DeliveryResult:
        """
        Send the code on both channels concurrently and classify the outcome.

        Both sends are awaited to completion; one failing does not cancel
        the other.
        """
        email_result, sms_result = await asyncio.gather(
            cls.send_email(email, code, purpose),
            cls.send_sms(phone, code, purpose),
        )
        result = DeliveryResult(email=email_result, sms=sms_result)
        delivery_logger.info(
            f"Dual-channel delivery {result.status.value}: "
            f"email={email_result.ok} ({email_result.detail}), "
            f"sms={sms_result.ok} ({sms_result.detail})"
        )
        return result


__all__ = [
    "ChannelResult",
    "DeliveryResult",
    "DeliveryGateway",
    "EMAIL_NOT_CONFIGURED",
    "SMS_NOT_CONFIGURED",
    "sms_body",
]
