from enum import StrEnum


class ProductRequestStatus(StrEnum):
    """
    Enumeration for the status of a product request.

    Attributes:
        PENDING: Awaiting a decision.
        APPROVED: Approved; terminal.
        REJECTED: Rejected; terminal.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ProductRequestStatus.PENDING


class IntentKind(StrEnum):
    """
    Enumeration for the actions a reviewer can trigger on a table row.

    Attributes:
        APPROVE: Approve the request.
        REJECT: Reject the request.
        EDIT: Change catalogue fields (pricing, category, ...) of a pending request.
    """

    APPROVE = "approve"
    REJECT = "reject"
    EDIT = "edit"

    @property
    def decision(self) -> ProductRequestStatus | None:
        """The status a decision intent resolves to, None for edits."""
        return _DECISIONS.get(self)


_DECISIONS = {
    IntentKind.APPROVE: ProductRequestStatus.APPROVED,
    IntentKind.REJECT: ProductRequestStatus.REJECTED,
}
