from paddock.workers.tasks.notifications import (
    forward_contact_message_task,
    send_checkout_emails_task,
)

__all__ = [
    "forward_contact_message_task",
    "send_checkout_emails_task",
]
