"""Follow-up scheduler port — abstract interface for salesperson follow-ups."""

from abc import ABC, abstractmethod


class FollowUpSchedulerPort(ABC):
    """Abstract interface for follow-up scheduler adapters."""

    @abstractmethod
    def schedule_follow_up(
        self,
        salesperson_email: str,
        salesperson_name: str | None,
        customer_name: str,
        customer_phone: str | None,
    ) -> dict:
        """Ask the salesperson to contact the customer after a delivery.

        Returns:
            dict with keys: follow_up_id, status ("scheduled" or "failed"), error (optional)
        """
        ...
