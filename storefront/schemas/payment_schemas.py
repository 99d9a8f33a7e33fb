from typing import Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateIntentRequest(CamelModel):
    product_id: int


class CreateIntentResponse(CamelModel):
    intent_id: str
    order_id: str
    amount: int
    currency: str
    gateway_public_key: str


class ConfirmPaymentRequest(BaseModel):
    # accepts our camelCase names and the razorpay checkout handler's own names
    order_id: str = Field(
        min_length=1, max_length=64,
        validation_alias=AliasChoices("orderId", "order_id", "razorpay_order_id"),
    )
    payment_id: str = Field(
        min_length=1, max_length=64,
        validation_alias=AliasChoices("paymentId", "payment_id", "razorpay_payment_id"),
    )
    signature: str = Field(
        min_length=1, max_length=256,
        validation_alias=AliasChoices("signature", "razorpay_signature"),
    )


class ConfirmPaymentResponse(CamelModel):
    success: bool = True
    order_id: str
    already_processed: bool = False


class WebhookAck(BaseModel):
    status: str = "ok"


# -------- Razorpay webhook payload (only the parts we read) --------

class WebhookPaymentEntity(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    order_id: Optional[str] = None
    amount: Optional[int] = None
    status: Optional[str] = None


class WebhookPayment(BaseModel):
    entity: WebhookPaymentEntity


class WebhookPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    payment: Optional[WebhookPayment] = None


class RazorpayWebhookEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event: str
    payload: WebhookPayload = Field(default_factory=WebhookPayload)
