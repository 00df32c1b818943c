from enum import Enum


class OTPPurpose(str, Enum):
    """Purpose of a one-time code."""

    DOCUMENT_DOWNLOAD = "document_download"

    @property
    def display_text(self) -> str:
        return self.value.replace("_", " ")


class DeliveryChannel(str, Enum):
    """Out-of-band channels a one-time code can be delivered on."""

    EMAIL = "email"
    SMS = "sms"


class DeliveryStatus(str, Enum):
    """Outcome of a dual-channel send."""

    FULL = "full"  # both channels delivered
    DEGRADED = "degraded"  # exactly one channel delivered
    FAILED = "failed"  # nothing delivered


class DocumentType(str, Enum):
    """Categories a student document can be filed under."""

    CERTIFICATE = "certificate"
    FEE_RECEIPT = "fee-receipt"
    TRANSCRIPT = "transcript"
    ID_CARD = "id-card"
    OTHER = "other"
