"""
Rendered notification, ready to hand to the mail transport.
"""

from pydantic import BaseModel


class NotificationMessage(BaseModel):
    """Email-equivalent rendering of one crash report."""

    model_config = {"frozen": True}

    sender: str
    recipient: str
    subject: str
    body: str
