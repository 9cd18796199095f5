import logging

from db import MessageRepository, UserRepository
from errors import NotFoundError

logger = logging.getLogger(__name__)


class MessagingService:
    """Send and read direct messages."""

    def __init__(self, message_repo: MessageRepository, user_repo: UserRepository) -> None:
        self.messages = message_repo
        self.users = user_repo

    def send(self, sender_id: int, receiver_id: int, content: str) -> dict:
        if self.users.get(receiver_id) is None:
            raise NotFoundError("Receiver not found")
        message = self.messages.create(sender_id, receiver_id, content)
        logger.info("Message %s sent from %s to %s", message["id"], sender_id, receiver_id)
        return message

    def inbox(self, user_id: int) -> list[dict]:
        """Return messages sent or received by ``user_id``, newest first."""
        sent = self.messages.fetch_all_messages(sender_id=user_id)
        received = self.messages.fetch_all_messages(receiver_id=user_id)
        seen: set[int] = set()
        merged = []
        for message in sent + received:
            if message["id"] in seen:
                continue
            seen.add(message["id"])
            merged.append(message)
        return sorted(merged, key=lambda m: (m["sent_at"], m["id"]), reverse=True)

    def mark_read(self, message_id: int) -> None:
        if not self.messages.mark_read(message_id):
            raise NotFoundError("Message not found")
