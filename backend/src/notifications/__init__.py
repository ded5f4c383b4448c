"""Push notifications for the Letterbox API

Live WebSocket connections register under their user's identity; the
dispatcher forwards recipient-facing message events to them, best-effort.
"""
