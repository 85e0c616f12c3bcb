from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:
    from request_approval.domain.schemas import DecisionPayload, Markup, ProductRequest, ReferenceLists


class RequestSource(ABC):
    """
    Supplies product requests and pricing markups, and answers catalogue
    lookups (existing SKUs, brands, suppliers and categories).
    """

    @abstractmethod
    async def fetch_requests(self) -> list["ProductRequest"]:
        """
        Fetch the product requests awaiting review.

        Returns:
            list[ProductRequest]: Requests in source order

        Raises:
            GatewayError: If the source cannot be read
        """
        pass

    @abstractmethod
    async def fetch_markups(self) -> list["Markup"]:
        """
        Fetch every configured pricing markup.

        Raises:
            GatewayError: If the source cannot be read
        """
        pass

    @abstractmethod
    async def fetch_existing_skus(self, skus: Iterable[str]) -> set[str]:
        """
        Ask the catalogue which of `skus` already belong to a product.

        Args:
            skus (Iterable[str]): Candidate SKUs

        Returns:
            set[str]: The SKUs that already exist

        Raises:
            GatewayError: If the catalogue cannot be queried
        """
        pass

    @abstractmethod
    async def fetch_reference_lists(self) -> "ReferenceLists":
        """
        Fetch the catalogue brands, suppliers and categories.

        Raises:
            GatewayError: If the catalogue cannot be read
        """
        pass


class DecisionSink(ABC):
    """
    Persists approve/reject decisions remotely.
    """

    @abstractmethod
    async def submit_decision(self, payload: "DecisionPayload") -> None:
        """
        Record a decision.

        Args:
            payload (DecisionPayload): `{id, decision, note}` plus the product for approvals

        Raises:
            GatewayTimeoutError: If the sink does not answer in time
            GatewayConflictError: If the request was already decided
            GatewayError: On any other failure
        """
        pass


class GatewayProvider(RequestSource, DecisionSink):
    """
    Base class for providers that act as both the request source and the decision sink.
    """

    def __init__(self, config: Any) -> None:
        """Initialize gateway provider with configuration."""
        self.config = config

    async def health_check(self) -> bool:
        """
        Check if the remote side is reachable.

        Returns:
            bool: True if healthy, False otherwise
        """
        return True

    async def close(self) -> None:
        """
        Close connections and clean up resources.
        """
        pass
