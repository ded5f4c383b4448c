"""Security tests for Letterbox

Tests cover:
- Mailbox isolation between users
- Draft privacy
- Search input handling
"""
