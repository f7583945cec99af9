"""Base address lookup interface."""

from abc import ABC, abstractmethod

from payload_mapper.schema import LookupType


class BaseLookupProvider(ABC):
    """Abstract base class for address lookup services."""

    @abstractmethod
    def lookup(
        self,
        address: str,
        lookup_type: LookupType,
        country_context: str | None = None,
    ) -> str:
        """Resolve one address component.

        Args:
            address: Comma-joined address parts read from the order
            lookup_type: Component to return (postal code, city, ...)
            country_context: Optional country hint

        Returns:
            The resolved value, or an empty string when it cannot be determined
        """
        pass
