"""Core normalization functions."""

import logging
from typing import Any

from payload_mapper.extraction import parse_extraction_response
from payload_mapper.instructions import has_side_channel_fields
from payload_mapper.mapping.engine import NormalizationConfig, normalize_document
from payload_mapper.mapping.repository import RulesSource, load_rules
from payload_mapper.mapping.types import NormalizationResult
from payload_mapper.providers.base import BaseLookupProvider
from payload_mapper.schema import AddressLookupLogic, MappingRules

logger = logging.getLogger(__name__)


def _build_lookup_provider(api_key: str | None) -> BaseLookupProvider:
    from payload_mapper.providers.gemini import GeminiLookupProvider

    return GeminiLookupProvider(api_key=api_key)


def uses_address_lookup(rules: MappingRules) -> bool:
    referenced = {mapping.function_id for mapping in rules.field_mappings if mapping.type == "function"}
    return any(
        isinstance(function.logic, AddressLookupLogic) and function.id in referenced
        for function in rules.functions
    )


def normalize(
    document: Any,
    rules: RulesSource,
    *,
    workflow_only_data: dict[str, Any] | None = None,
    config: NormalizationConfig | None = None,
    lookup_provider: BaseLookupProvider | None = None,
    api_key: str | None = None,
) -> NormalizationResult:
    """Normalize an extracted document against a rule bundle.

    Args:
        document: Extracted document, ``{"orders": [...]}`` shaped.
        rules: MappingRules, or a dict / JSON text / JSON file path to load them from.
        workflow_only_data: Side-channel values returned next to the document.
        config: Engine options. Defaults to ``NormalizationConfig.from_env()``.
        lookup_provider: Address lookup collaborator. When omitted and the
            rules use address lookups, a Gemini provider is built from
            ``api_key`` (or the GEMINI_API_KEY env var).
        api_key: Gemini API key for the default lookup provider.

    Returns:
        NormalizationResult with the document, side channel and warnings.
    """
    rules = load_rules(rules)
    if lookup_provider is None and uses_address_lookup(rules):
        lookup_provider = _build_lookup_provider(api_key)
    return normalize_document(
        document,
        rules,
        workflow_only_data=workflow_only_data,
        config=config or NormalizationConfig.from_env(),
        lookup_provider=lookup_provider,
    )


def normalize_extraction(
    response_text: str,
    rules: RulesSource,
    *,
    config: NormalizationConfig | None = None,
    lookup_provider: BaseLookupProvider | None = None,
    api_key: str | None = None,
) -> NormalizationResult:
    """Parse a raw extractor response and normalize it in one call.

    Raises:
        ResponseParseError: If the response is not valid JSON.
        ConfigurationError: If the rules fail validation.
    """
    rules = load_rules(rules)
    parsed = parse_extraction_response(response_text, has_side_channel_fields(rules))
    logger.debug("Parsed extraction response with %d side-channel keys", len(parsed.workflow_only_data))
    return normalize(
        parsed.template_data,
        rules,
        workflow_only_data=parsed.workflow_only_data,
        config=config,
        lookup_provider=lookup_provider,
        api_key=api_key,
    )
