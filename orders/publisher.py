# orders/publisher.py
import json
import logging
import os

import pika
from pika.exceptions import AMQPError

logger = logging.getLogger(__name__)

# Se leen SIEMPRE desde variables de entorno (nada hardcodeado)
RABBIT_HOST   = os.getenv("RABBIT_HOST")
RABBIT_PORT   = int(os.getenv("RABBIT_PORT", "5672"))
RABBIT_VHOST  = os.getenv("RABBIT_VHOST", "/")
RABBIT_USER   = os.getenv("RABBIT_USER", "printshop")
RABBIT_PASS   = os.getenv("RABBIT_PASS", "printshop")
EXCHANGE      = os.getenv("RABBIT_EXCHANGE", "order_events")


def _connection_parameters() -> pika.ConnectionParameters:
    """Short timeouts and a few connection retries."""
    return pika.ConnectionParameters(
        host=RABBIT_HOST,
        port=RABBIT_PORT,
        virtual_host=RABBIT_VHOST,
        credentials=pika.PlainCredentials(RABBIT_USER, RABBIT_PASS),
        heartbeat=30,
        blocked_connection_timeout=5,
        socket_timeout=5,
        connection_attempts=3,
        retry_delay=2.0,
    )


def _publish(routing_key: str, payload: dict) -> None:
    """Publishes without failing the request if the broker is down."""
    if not RABBIT_HOST:
        logger.debug("RABBIT_HOST not set; skipping %s", routing_key)
        return
    conn = None
    try:
        conn = pika.BlockingConnection(_connection_parameters())
        ch = conn.channel()
        ch.exchange_declare(exchange=EXCHANGE, exchange_type="topic", durable=True)
        ch.basic_publish(
            exchange=EXCHANGE,
            routing_key=routing_key,
            body=json.dumps(payload).encode("utf-8"),
            properties=pika.BasicProperties(
                content_type="application/json",
                delivery_mode=2,  # persistente si la cola es durable
            ),
        )
    except (AMQPError, OSError) as e:
        logger.warning("error publishing %s: %s", routing_key, e)
    finally:
        if conn is not None and conn.is_open:
            conn.close()


def publish_order_created(order_id: str, status: str, total_amount: int) -> None:
    _publish("order.created", {"order_id": order_id, "status": status, "total_amount": total_amount})


def publish_order_status_updated(
    order_id: str, status: str, payment_status: str, version: int, meta: dict | None = None
):
    payload = {
        "order_id": order_id,
        "new_status": status,
        "payment_status": payment_status,
        "version": int(version),
    }
    if meta:
        payload["meta"] = meta
    _publish("order.status.updated", payload)


def publish_file_removed(order_id: str, file_name: str, cancelled: bool, total_amount: int) -> None:
    _publish(
        "order.file.removed",
        {
            "order_id": order_id,
            "file_name": file_name,
            "order_cancelled": cancelled,
            "total_amount": total_amount,
        },
    )


def publish_customer_verified(customer_id: str, phone: str) -> None:
    _publish("customer.verified", {"customer_id": customer_id, "phone": phone})
