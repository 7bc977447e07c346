"""LINE to OpenAI webhook relay.

This package provides:
- Signature-verified intake of LINE Messaging API webhook deliveries
- Per-event dispatch to a chat-completion service
- Reply delivery through the LINE reply endpoint
"""
