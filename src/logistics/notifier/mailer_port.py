"""Transactional mailer port — abstract interface for templated customer emails."""

from abc import ABC, abstractmethod

GANI_WARRANTY = "gani_warranty"
REVIEW_REQUEST = "review_request"


class MailerPort(ABC):
    """Abstract interface for transactional mailer adapters."""

    @abstractmethod
    def trigger(self, to: str, template: str) -> dict:
        """Trigger the named email template for one recipient.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
