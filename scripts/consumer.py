# scripts/consumer.py
import json
import os

import pika

RABBIT_HOST   = os.getenv("RABBIT_HOST", "127.0.0.1")
RABBIT_PORT   = int(os.getenv("RABBIT_PORT", "5672"))
RABBIT_USER   = os.getenv("RABBIT_USER", "guest")
RABBIT_PASS   = os.getenv("RABBIT_PASS", "guest")
RABBIT_VHOST  = os.getenv("RABBIT_VHOST", "/")
EXCHANGE      = os.getenv("RABBIT_EXCHANGE", "order_events")

BIND_KEYS = ["order.created", "order.status.updated", "order.file.removed", "customer.verified"]


def describe(routing_key: str, payload: dict) -> str:
    """One readable line per shop event."""
    if routing_key == "order.created":
        return f"new order {payload['order_id']} for {payload['total_amount']}"
    if routing_key == "order.status.updated":
        who = payload.get("meta", {}).get("by", "?")
        return (f"order {payload['order_id']} -> {payload['new_status']}/"
                f"{payload['payment_status']} v{payload['version']} (by {who})")
    if routing_key == "order.file.removed":
        tail = "order cancelled" if payload["order_cancelled"] else f"now {payload['total_amount']}"
        return f"order {payload['order_id']} lost {payload['file_name']}, {tail}"
    if routing_key == "customer.verified":
        return f"customer {payload['phone']} verified"
    return json.dumps(payload)


def main():
    creds = pika.PlainCredentials(RABBIT_USER, RABBIT_PASS)
    params = pika.ConnectionParameters(
        host=RABBIT_HOST, port=RABBIT_PORT, virtual_host=RABBIT_VHOST,
        credentials=creds, heartbeat=30, blocked_connection_timeout=10
    )
    conn = pika.BlockingConnection(params)
    ch = conn.channel()
    ch.exchange_declare(exchange=EXCHANGE, exchange_type="topic", durable=True)

    # Cola exclusiva y autodelete para inspección
    q = ch.queue_declare(queue="", exclusive=True, auto_delete=True)
    qname = q.method.queue

    for key in BIND_KEYS:
        ch.queue_bind(exchange=EXCHANGE, queue=qname, routing_key=key)

    print(f"Listening for {BIND_KEYS} on {EXCHANGE} (queue {qname}). Ctrl+C to exit.")

    def on_msg(ch_, method, props, body):
        try:
            line = describe(method.routing_key, json.loads(body))
        except (ValueError, KeyError):
            line = body.decode("utf-8", errors="replace")
        print(f"[x] {method.routing_key} {line}")
        ch_.basic_ack(delivery_tag=method.delivery_tag)

    ch.basic_consume(queue=qname, on_message_callback=on_msg, auto_ack=False)
    try:
        ch.start_consuming()
    except KeyboardInterrupt:
        print("\nClosing...")
        ch.stop_consuming()
        conn.close()


if __name__ == "__main__":
    main()
