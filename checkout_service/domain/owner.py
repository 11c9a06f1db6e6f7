# checkout_service/domain/owner.py
from dataclasses import dataclass

from checkout_service.domain.errors import ValidationError


@dataclass(frozen=True)
class Owner:
    """Who a cart (and a coupon redemption) belongs to.

    Signed-in shoppers carry `user_id`, guests carry `session_id`; exactly one
    of them is set. Both are opaque strings handed over by the identity layer.
    """

    user_id: str | None = None
    session_id: str | None = None

    def __post_init__(self):
        if bool(self.user_id) == bool(self.session_id):
            raise ValidationError("Exactly one of user id or session id is required")

    @property
    def key(self) -> str:
        """Redeemer key used for coupon single-use checks."""
        if self.user_id:
            return f"user:{self.user_id}"
        return f"session:{self.session_id}"
