"""Lookup providers for payload-mapper."""

from payload_mapper.providers.base import BaseLookupProvider
from payload_mapper.providers.gemini import GeminiLookupProvider

__all__ = ["BaseLookupProvider", "GeminiLookupProvider"]
