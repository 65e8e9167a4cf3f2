"""Fake follow-up scheduler — records follow-ups for testing."""

from uuid import uuid4

from logistics.notifier.scheduler_port import FollowUpSchedulerPort


class FakeFollowUpScheduler(FollowUpSchedulerPort):
    def __init__(self):
        self.scheduled: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Scheduler unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Scheduler unavailable"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def schedule_follow_up(
        self,
        salesperson_email: str,
        salesperson_name: str | None,
        customer_name: str,
        customer_phone: str | None,
    ) -> dict:
        if not self.should_succeed:
            return {"follow_up_id": None, "status": "failed", "error": self.failure_reason}

        follow_up_id = f"fu-{uuid4().hex[:12]}"
        self.scheduled.append(
            {
                "follow_up_id": follow_up_id,
                "salesperson_email": salesperson_email,
                "salesperson_name": salesperson_name,
                "customer_name": customer_name,
                "customer_phone": customer_phone,
            }
        )
        return {"follow_up_id": follow_up_id, "status": "scheduled"}
