"""HTTP API for Chat Logger."""
