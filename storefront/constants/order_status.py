from enum import Enum


class OrderStatus(str, Enum):
    created = "created"
    paid = "paid"
    failed = "failed"


ALLOWED_TRANSITIONS = {
    OrderStatus.created: [OrderStatus.paid, OrderStatus.failed],
    OrderStatus.paid: [],
    OrderStatus.failed: [],
}
