"""EmailAddress value object for customer contact emails."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from logistics.domain import logistics

_FORBIDDEN_CHARACTERS = (";", ",", "(", ")", '"', ":", "<", ">", "[", "]", "\\")


@logistics.value_object(part_of="Customer")
class EmailAddress:
    """A structurally valid email address: one @, a local part and a dotted domain."""

    address = String(required=True, max_length=254)

    @invariant.post
    def verify_email_address(self):
        email = self.address
        error = ValidationError({"email": [f"Invalid email address: {email!r}"]})

        if any(c.isspace() for c in email) or email.count("@") != 1:
            raise error

        local_part, domain_part = email.split("@", 1)
        if not local_part or local_part.startswith(".") or local_part.endswith("."):
            raise error
        if not domain_part or domain_part.startswith(".") or domain_part.endswith("."):
            raise error
        if "." not in domain_part or ".." in email:
            raise error
        if any(label.startswith("-") or label.endswith("-") for label in domain_part.split(".")):
            raise error
        if any(c in email for c in _FORBIDDEN_CHARACTERS):
            raise error
