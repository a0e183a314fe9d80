from dataclasses import asdict, dataclass
from datetime import datetime
import uuid

from django.utils import timezone


class EventType:
    ORDER_CREATED = "OrderCreated"
    ORDER_STATUS_CHANGED = "OrderStatusChanged"

    ALL = (ORDER_CREATED, ORDER_STATUS_CHANGED)


@dataclass(frozen=True)
class OrderEvent:
    """
    Snapshot of an order at the moment a state-affecting call succeeded.
    Never persisted; it lives until both sinks have been handed a copy.
    """
    event_type: str
    order_id: uuid.UUID
    tenant_id: uuid.UUID
    status: str
    version: int
    timestamp: datetime

    @classmethod
    def from_order(cls, order, event_type):
        if event_type not in EventType.ALL:
            raise ValueError(f"Unknown order event type: {event_type}")
        return cls(
            event_type=event_type,
            order_id=order.pk,
            tenant_id=order.tenant_id,
            status=str(order.status),
            version=order.version,
            timestamp=timezone.now(),
        )

    def to_payload(self) -> dict:
        """JSON-safe dict used on the broker and the live channel."""
        data = asdict(self)
        data["order_id"] = str(self.order_id)
        data["tenant_id"] = str(self.tenant_id)
        data["timestamp"] = self.timestamp.isoformat()
        return data

    @classmethod
    def from_payload(cls, data):
        return cls(
            event_type=data["event_type"],
            order_id=uuid.UUID(data["order_id"]),
            tenant_id=uuid.UUID(data["tenant_id"]),
            status=data["status"],
            version=int(data.get("version", 0)),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )
