from dataclasses import dataclass

from hostellink.core.errors import Forbidden

STUDENT = "student"
LANDLORD = "landlord"
ADMIN = "admin"
ROLES = (STUDENT, LANDLORD, ADMIN)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, built per request and passed into every core operation."""
    user_id: str
    role: str
    email: str = ""

    def require(self, *roles: str) -> None:
        if self.role not in roles:
            raise Forbidden(f"Only {' or '.join(roles)} accounts can do this")
