"""
models/message.py
-----------------
Domain model for direct messages between two users.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Message:
    """
    An immutable direct message.

    Attributes:
        text: Message body.
        sent_time: Server-assigned timestamp.
        from_user: Sender username (None when only text and time were requested).
        to_user: Recipient username.
    """
    text: str
    sent_time: datetime
    from_user: Optional[str] = None
    to_user: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"text": self.text, "sentTime": self.sent_time.isoformat()}
        if self.from_user is not None:
            data["fromUser"] = self.from_user
        if self.to_user is not None:
            data["toUser"] = self.to_user
        return data
