"""Fake mailer — records triggered templates in memory for test assertions."""

from uuid import uuid4

from logistics.notifier.mailer_port import MailerPort


class FakeMailer(MailerPort):
    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Mail delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Mail delivery failed"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def trigger(self, to: str, template: str) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"mail-{uuid4().hex[:12]}"
        self.sent.append({"message_id": message_id, "to": to, "template": template})
        return {"message_id": message_id, "status": "sent"}

    def templates_sent_to(self, to: str) -> list[str]:
        return [m["template"] for m in self.sent if m["to"] == to]
