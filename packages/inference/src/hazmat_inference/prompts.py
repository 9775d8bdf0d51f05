"""Prompt templates for compliance analysis.

All prompts ask for JSON only. Assembly is deterministic template
substitution: the same inputs always produce the same prompt.
"""

import json
from typing import Optional

from hazmat_contracts import REGULATION_RULES, VALIDATION_CHECKS, ShipmentData

DEFAULT_MAX_DOCUMENT_CHARS = 30000

SYSTEM_ROLE = (
    "You are a hazmat shipping compliance expert for dangerous goods "
    "transported by air (IATA DGR) and ground (DOT 49 CFR)."
)

VALIDATION_OUTPUT_CONTRACT = """Return ONLY a valid JSON object with a "status" field (Pass/Fail/Warnings) and an "issues" array.
Each issue must have this structure:
{
  "status": "Fail",
  "issues": [
    {
      "description": "Issue description",
      "confidence": 95,
      "regulationReference": "IATA DGR 1.2.3",
      "recommendation": "Fix recommendation",
      "severity": "Critical",
      "explanation": "Why this matters"
    }
  ]
}
Severity must be one of Critical, Warning, Info. Confidence is 0-100.
Return "Pass" with an empty issues array when nothing is wrong."""

CITATION_INSTRUCTION = (
    "When a finding relies on the reference context above, cite the source "
    'name in "regulationReference" or "explanation" (for example: '
    '"per <source name>").'
)

VALIDATION_PROMPT = """{role} Analyze this dangerous goods shipment for compliance with {regulation} regulations and {carrier}-specific requirements.

SHIPMENT DETAILS:
{fields}

HARD CONSTRAINTS ({carrier} {mode}). These carrier rules are binding:
{rules}

ANALYZE FOR:
{checks}
{document_section}{context_section}
{output_contract}"""

SCREENSHOT_IDENTIFY_PROMPT = """This image is a screenshot of a shipping application's Dangerous Goods screen.
Read the UN number and the proper shipping name of the commodity shown.

Return ONLY a JSON object:
{
  "unNumber": "UN1263",
  "properShippingName": "Paint"
}
Use an empty string for a value that is not visible."""

SCREENSHOT_VALIDATION_PROMPT = """{role} The image is a screenshot of a shipping application's Dangerous Goods screen (for example FedEx Ship Manager).
Read every dangerous goods field shown (carrier, service, UN number, proper shipping name, class, packing group, quantity, packaging, packing instruction, signatory) and validate the declaration.
{identity_section}
CARRIER RULES. Apply the rule set matching the carrier and mode shown; these rules are binding:
{rules}

ANALYZE FOR:
{checks}
{context_section}
{output_contract}"""

SDS_EXTRACTION_PROMPT = """Analyze the following text extracted from a Safety Data Sheet (SDS) or shipping document.
Extract the following hazardous materials shipping information:
- UN Number (e.g., UN1263)
- Proper Shipping Name
- Hazard Class
- Packing Group (I, II, or III)
- Technical Name (only if the proper shipping name contains "n.o.s." or requires it)
- Packing Instruction (e.g., 355, Y344, 965)
- Packaging Type Description (e.g., "1 Fibreboard Box x 4 L", "2 Steel Drums x 10 kg")

For each extracted field, provide a confidence score from 0 to 100 based on how certain you are about the extraction.

Return a JSON object with these keys:
{{
  "unNumber": "string",
  "properShippingName": "string",
  "hazardClass": "string",
  "packingGroup": "string",
  "technicalName": "string",
  "packingInstruction": "string",
  "packagingType": "string",
  "confidence": {{
    "unNumber": number,
    "properShippingName": number,
    "hazardClass": number,
    "packingGroup": number,
    "technicalName": number,
    "packingInstruction": number,
    "packagingType": number
  }}
}}
If a field is not found, return an empty string for the value and 0 for confidence.
IMPORTANT: Return ONLY the raw JSON object. Do not use Markdown formatting. Do not include any conversational text.

Document Text:
{text}"""

SUGGESTION_PROMPT = """{role} Based on the current shipment details, suggest the most likely values for the "{field}" field.

Current Form Data:
{fields}

Provide 1-3 recommendations for "{field}".
Sort by confidence (highest first).

Return ONLY a JSON array of objects with this structure:
[
  {{
    "value": "suggested value",
    "confidence": 90,
    "reasoning": "brief explanation why"
  }}
]"""


def _or_na(value) -> str:
    if value is None or value == "":
        return "N/A"
    return str(value)


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def format_shipment_fields(shipment: ShipmentData) -> str:
    """Field dump used in validation and suggestion prompts."""
    lines = [
        ("Carrier", shipment.carrier),
        ("Mode", shipment.mode),
        ("Service", shipment.service),
        ("Regulation", shipment.regulation),
        ("Gross Weight", f"{shipment.weight:g} {shipment.weight_unit}"),
        ("UN Number", shipment.un_number),
        ("Proper Shipping Name", shipment.proper_shipping_name),
        ("Technical Name", _or_na(shipment.technical_name)),
        ("Hazard Class", shipment.hazard_class),
        ("Packing Group", _or_na(shipment.packing_group)),
        ("Quantity", f"{shipment.quantity:g} {shipment.quantity_unit}"),
        ("Packaging Type", _or_na(shipment.packaging_type)),
        ("Packing Instruction", _or_na(shipment.packing_instruction)),
        ("Container Type", _or_na(shipment.container_type)),
        ("Accessibility", _or_na(shipment.accessibility)),
        ("CAO", _yes_no(shipment.cargo_aircraft_only)),
        ("Reportable Quantity", _yes_no(shipment.reportable_quantity)),
        ("Emergency Phone", shipment.emergency_phone),
        ("Signatory", _or_na(shipment.signatory_name)),
        ("Signatory Title", _or_na(shipment.signatory_title)),
        ("Signatory Place", _or_na(shipment.signatory_place)),
        ("Offeror", _or_na(shipment.offeror_name)),
    ]
    return "\n".join(f"- {label}: {value}" for label, value in lines)


def _numbered(items: list[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def _context_section(context_block: str) -> str:
    if not context_block:
        return ""
    return (
        "\nREFERENCE CONTEXT (ranked by weight, highest first):\n"
        f"{context_block}\n\n{CITATION_INSTRUCTION}\n"
    )


def _truncate(text: str, max_chars: int) -> str:
    return text[:max_chars]


def format_validation_prompt(
    shipment: ShipmentData,
    carrier_mode_rules: list[str],
    context_block: str,
    checks: Optional[list[str]] = None,
    document_text: Optional[str] = None,
    max_document_chars: int = DEFAULT_MAX_DOCUMENT_CHARS,
) -> str:
    """Build the shipment validation prompt.

    Args:
        shipment: Shipment under review
        carrier_mode_rules: Rule set for the shipment's carrier and mode
        context_block: Rendered reference context ("" omits the section)
        checks: Enabled analysis checks (default: all)
        document_text: Text of a supporting document, if one was supplied
        max_document_chars: Truncation limit for document_text

    Returns:
        Formatted prompt string
    """
    checks = list(VALIDATION_CHECKS.values()) if checks is None else checks

    document_section = ""
    if document_text and document_text.strip():
        document_section = (
            "\nSUPPORTING DOCUMENT TEXT:\n---\n"
            f"{_truncate(document_text.strip(), max_document_chars)}\n---\n"
        )

    return VALIDATION_PROMPT.format(
        role=SYSTEM_ROLE,
        regulation=shipment.regulation,
        carrier=shipment.carrier,
        mode=shipment.mode,
        fields=format_shipment_fields(shipment),
        rules="\n".join(f"- {rule}" for rule in carrier_mode_rules),
        checks=_numbered(checks) if checks else "- General compliance review",
        document_section=document_section,
        context_section=_context_section(context_block),
        output_contract=VALIDATION_OUTPUT_CONTRACT,
    )


def format_screenshot_identify_prompt() -> str:
    return SCREENSHOT_IDENTIFY_PROMPT


def format_screenshot_validation_prompt(
    context_block: str,
    search_terms: Optional[list[str]] = None,
    checks: Optional[list[str]] = None,
) -> str:
    """Build the final screenshot validation prompt.

    Args:
        context_block: Rendered reference context ("" omits the section)
        search_terms: Identity recovered in the first pass, if any
        checks: Enabled analysis checks (default: all)
    """
    checks = list(VALIDATION_CHECKS.values()) if checks is None else checks

    identity_section = ""
    if search_terms:
        identity_section = (
            "\nA first pass identified the commodity as: "
            f"{', '.join(search_terms)}. Verify this against the image.\n"
        )

    return SCREENSHOT_VALIDATION_PROMPT.format(
        role=SYSTEM_ROLE,
        identity_section=identity_section,
        rules=json.dumps(REGULATION_RULES, indent=2),
        checks=_numbered(checks) if checks else "- General compliance review",
        context_section=_context_section(context_block),
        output_contract=VALIDATION_OUTPUT_CONTRACT,
    )


def format_sds_prompt(text: str, max_chars: int = DEFAULT_MAX_DOCUMENT_CHARS) -> str:
    """Build the SDS field extraction prompt, truncating the document text."""
    return SDS_EXTRACTION_PROMPT.format(text=_truncate(text, max_chars))


def format_suggestion_prompt(shipment: ShipmentData, field: str) -> str:
    fields = "\n".join(
        [
            f"- Carrier: {shipment.carrier}",
            f"- Mode: {shipment.mode}",
            f"- UN Number: {shipment.un_number}",
            f"- Proper Shipping Name: {shipment.proper_shipping_name}",
            f"- Hazard Class: {shipment.hazard_class}",
            f"- Packing Group: {_or_na(shipment.packing_group)}",
            f"- Quantity: {shipment.quantity:g} {shipment.quantity_unit}",
        ]
    )
    return SUGGESTION_PROMPT.format(role=SYSTEM_ROLE, field=field, fields=fields)
