"""Hazmat KB Inference - prompt assembly, model invocation and response parsing.

Provides:
- LLMClient interface and GeminiClient (google-genai)
- Prompt templates for validation, screenshots, SDS extraction, suggestions
- Permissive JSON normalization of model responses
- Usage/cost estimation
- ComplianceAnalyzer tying them together
"""

from hazmat_inference.analyzer import ComplianceAnalyzer
from hazmat_inference.base_client import GenerationResult, InlineImage, LLMClient
from hazmat_inference.cost_estimator import (
    DEFAULT_RATES,
    RATE_TABLE,
    ModelRates,
    cost_of,
    rates_for,
)
from hazmat_inference.gemini_client import GeminiClient
from hazmat_inference.prompts import (
    CITATION_INSTRUCTION,
    format_screenshot_identify_prompt,
    format_screenshot_validation_prompt,
    format_sds_prompt,
    format_suggestion_prompt,
    format_validation_prompt,
)
from hazmat_inference.response_parser import (
    find_balanced_span,
    normalize_json_response,
    parse_json_payload,
    parse_model,
    parse_suggestions,
    reconcile_status,
    status_from_issues,
    strip_code_fences,
)

__version__ = "1.0.0"

__all__ = [
    "ComplianceAnalyzer",
    "GenerationResult",
    "InlineImage",
    "LLMClient",
    "DEFAULT_RATES",
    "RATE_TABLE",
    "ModelRates",
    "cost_of",
    "rates_for",
    "GeminiClient",
    "CITATION_INSTRUCTION",
    "format_screenshot_identify_prompt",
    "format_screenshot_validation_prompt",
    "format_sds_prompt",
    "format_suggestion_prompt",
    "format_validation_prompt",
    "find_balanced_span",
    "normalize_json_response",
    "parse_json_payload",
    "parse_model",
    "parse_suggestions",
    "reconcile_status",
    "status_from_issues",
    "strip_code_fences",
]
