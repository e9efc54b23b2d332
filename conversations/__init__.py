"""Conversations module."""
from conversations.services import (
    seed_welcome_message,
    create_exchange,
    list_messages,
    get_message,
    complete_message,
    fail_message,
    delete_message,
    reset_session
)

__all__ = [
    "seed_welcome_message",
    "create_exchange",
    "list_messages",
    "get_message",
    "complete_message",
    "fail_message",
    "delete_message",
    "reset_session"
]
