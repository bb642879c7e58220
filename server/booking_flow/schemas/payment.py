"""Payment-related Pydantic schemas."""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from .common import CamelModel


class PaymentMethod(str, Enum):
    """Payment providers accepted by the backend."""
    STRIPE = "STRIPE"
    VNPAY = "VNPAY"
    MOMO = "MOMO"
    BANK_TRANSFER = "BANK_TRANSFER"


class CreatePaymentPayload(CamelModel):
    """Body of POST /payments/create."""

    booking_id: str
    payment_method: PaymentMethod = PaymentMethod.STRIPE
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None


class PaymentResponse(CamelModel):
    """Raw payment response from the backend."""

    payment_id: Optional[str] = None
    booking_id: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    payment_method: Optional[str] = None
    status: Optional[str] = None
    checkout_url: Optional[str] = None
    message: Optional[str] = None


class PaymentRedirect(CamelModel):
    """The traveller must finish paying on an external checkout page."""

    kind: Literal["REDIRECT"] = "REDIRECT"
    payment_id: Optional[str] = None
    checkout_url: str


class PaymentPending(CamelModel):
    """The payment is queued for manual or asynchronous approval."""

    kind: Literal["PENDING"] = "PENDING"
    payment_id: Optional[str] = None
    message: Optional[str] = None


PaymentOutcome = Annotated[Union[PaymentRedirect, PaymentPending], Field(discriminator="kind")]
