"""HTTP helpers for alert and pagination response headers."""
