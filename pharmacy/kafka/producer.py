import json, logging
from kafka import KafkaProducer
from kafka.errors import KafkaError
from pharmacy.core.config import settings

logger = logging.getLogger(__name__)

_producer = None

def get_producer() -> KafkaProducer:
    global _producer
    if _producer is None:
        _producer = KafkaProducer(
            bootstrap_servers=[settings.KAFKA_BOOTSTRAP],
            value_serializer=lambda v: json.dumps(v, default=str).encode("utf-8"),
            key_serializer=lambda v: (v.encode("utf-8") if isinstance(v, str) else v),
            linger_ms=5,
            retries=3,
        )
    return _producer

def send(topic: str, key: str, value: dict):
    p = get_producer()
    p.send(topic, key=key, value=value)
    p.flush(5)

def close_producer() -> None:
    global _producer
    if _producer is not None:
        _producer.close(timeout=5)
        _producer = None

def emit_order_event(event_type: str, order) -> None:
    """Publish an order lifecycle event after commit; failures are logged, never raised."""
    if not settings.EVENTS_ENABLED:
        return
    value = {
        "type": event_type,
        "order_id": order.id,
        "user_id": order.user_id,
        "status": order.status.value if hasattr(order.status, "value") else order.status,
        "total_amount": str(order.total_amount),
        "items": [
            {"product_id": it.product_id, "quantity": it.quantity, "unit_price": str(it.unit_price)}
            for it in order.items
        ],
    }
    try:
        send(settings.TOPIC_ORDER_EVENTS, key=str(order.id), value=value)
    except KafkaError as e:
        logger.warning("Failed to publish %s for order %s: %r", event_type, order.id, e)
