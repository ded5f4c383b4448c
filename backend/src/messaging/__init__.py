"""Messaging module for the Letterbox API

Owns the message lifecycle (draft, send, reply, forward, read, trash,
restore, delete), thread assignment and the mailbox views built on top of it.
"""
