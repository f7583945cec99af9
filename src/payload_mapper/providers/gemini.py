"""Gemini address lookup implementation."""

import logging
import os

from google import genai

from payload_mapper.exceptions import AuthenticationError, LookupFailedError, RateLimitError
from payload_mapper.providers.base import BaseLookupProvider
from payload_mapper.schema import LookupType

logger = logging.getLogger(__name__)

LOOKUP_LABELS: dict[str, str] = {
    "postal_code": "postal code or ZIP code",
    "city": "city name",
    "province": "province or state (2-letter code)",
    "country": "country name",
    "full_address": "complete formatted address",
}

LOOKUP_HINTS: dict[str, str] = {
    "postal_code": (
        'For Canadian addresses, format as "A1A 1A1" (with space). '
        'For US addresses, use 5-digit format "12345".'
    ),
    "province": 'Return only the 2-letter province/state code (e.g., "ON", "BC", "CA", "NY").',
}

LOOKUP_PROMPT = """Given this address information: "{address}"{country_hint}

Return ONLY the {label}, nothing else. No explanations, no formatting, just the value.

{hint}

If you cannot determine the {label} from the given information, return an empty response."""


def build_lookup_prompt(address: str, lookup_type: str, country_context: str | None = None) -> str:
    label = LOOKUP_LABELS.get(lookup_type, lookup_type)
    country_hint = f" The address is in {country_context}." if country_context else ""
    return LOOKUP_PROMPT.format(
        address=address,
        country_hint=country_hint,
        label=label,
        hint=LOOKUP_HINTS.get(lookup_type, ""),
    )


class GeminiLookupProvider(BaseLookupProvider):
    """Gemini text model used as an address resolver."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client=None,
    ):
        """Initialize Gemini lookup provider.

        Args:
            api_key: Gemini API key. Falls back to GEMINI_API_KEY env var.
            model: Model name. Falls back to ADDRESS_LOOKUP_MODEL env var.
            client: Preconfigured client, mainly for tests.

        Raises:
            AuthenticationError: If no API key is provided or found.
        """
        self.model = model or os.getenv("ADDRESS_LOOKUP_MODEL", "gemini-2.0-flash")
        if client is not None:
            self.client = client
            return

        self.api_key = api_key or os.environ.get("GEMINI_API_KEY")
        if not self.api_key:
            raise AuthenticationError(
                "No API key provided. Set GEMINI_API_KEY environment variable "
                "or pass api_key parameter."
            )
        self.client = genai.Client(api_key=self.api_key)

    def lookup(
        self,
        address: str,
        lookup_type: LookupType,
        country_context: str | None = None,
    ) -> str:
        """Resolve an address component with Gemini.

        Raises:
            RateLimitError: If API rate limit is exceeded
            AuthenticationError: If API key is invalid
            LookupFailedError: For any other failure
        """
        prompt = build_lookup_prompt(address, lookup_type, country_context)
        try:
            response = self.client.models.generate_content(model=self.model, contents=prompt)
        except genai.errors.ClientError as e:
            if "rate" in str(e).lower() or "quota" in str(e).lower():
                raise RateLimitError(f"API rate limit exceeded: {e}") from e
            if "auth" in str(e).lower() or "key" in str(e).lower():
                raise AuthenticationError(f"Invalid API key: {e}") from e
            raise LookupFailedError(f"Address lookup failed: {e}") from e
        except Exception as e:
            raise LookupFailedError(f"Address lookup failed: {e}") from e

        text = (getattr(response, "text", None) or "").strip()
        logger.debug("Address lookup %s for %r -> %r", lookup_type, address, text)
        return text
