"""Mobile-money payment provider.

Only the mocked M-Pesa path is implemented: it reports success synchronously
with a ``MOCK<epoch millis>`` transaction id, the way the demo deployment
does when no Daraja credentials are configured.
"""
import logging
import time
from dataclasses import dataclass

from hostellink.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    transaction_id: str
    message: str = ""


class MobileMoneyProvider:
    def initiate(self, phone_number: str, amount: int, booking_reference: str) -> PaymentResult:
        if settings.PAYMENT_SANDBOX_FAIL:
            logger.info("mock mpesa declined booking=%s amount=%s", booking_reference, amount)
            return PaymentResult(success=False, transaction_id="", message="Payment declined (Demo Mode)")
        txn = f"MOCK{int(time.time() * 1000)}"
        logger.info("mock mpesa payment booking=%s phone=%s amount=%s txn=%s", booking_reference, phone_number, amount, txn)
        return PaymentResult(success=True, transaction_id=txn, message="Payment initiated (Demo Mode)")


def get_payment_provider() -> MobileMoneyProvider:
    return MobileMoneyProvider()
