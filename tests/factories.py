"""Payload builders shared by the test modules (camelCase keys, as sent over HTTP)."""


def client_payload(suffix="a", **overrides):
    """Helper: minimal valid client payload (camelCase keys)."""
    payload = {"name": f"Client {suffix}", "email": f"client-{suffix}@example.com"}
    payload.update(overrides)
    return payload


def property_payload(title="Villa", price="500000", **overrides):
    """Helper: minimal valid property payload."""
    payload = {
        "title": title,
        "address": f"1 {title} Street",
        "price": price,
        "propertyType": "residential",
    }
    payload.update(overrides)
    return payload


def meeting_payload(title="Viewing", scheduled_at="2025-06-02T10:00:00Z", **overrides):
    """Helper: minimal valid meeting payload."""
    payload = {"title": title, "scheduledAt": scheduled_at}
    payload.update(overrides)
    return payload
