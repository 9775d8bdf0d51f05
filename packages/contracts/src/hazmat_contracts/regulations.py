"""Carrier/mode rule sets and analysis checks embedded in prompts.

The rule text is passed to the model verbatim as hard constraints.
The analysis checks are individually toggleable through the settings store.
"""

from typing import Literal

Carrier = Literal["FedEx", "UPS"]
TransportMode = Literal["Air", "Ground"]

CARRIERS: tuple[str, ...] = ("FedEx", "UPS")
MODES: tuple[str, ...] = ("Air", "Ground")

REGULATION_RULES: dict[str, dict[str, list[str]]] = {
    "FedEx": {
        "Air": [
            "Accessible DG (Classes 1, 2.1, 2.2-CAO, 3, 4, 5, 8) require premium services (Priority/First Overnight).",
            "Inaccessible DG (Classes 2.2-non-CAO, 6.1, 6.2, 7, 9) allowed on economy services.",
            "All shipments must follow IATA DGR even if domestic.",
            "FedEx SameDay only accepts UN 3373 and Dry Ice.",
        ],
        "Ground": [
            "No Class 1.1, 1.2, 1.3, 1.5 explosives.",
            "No Class 2.3 poison gas.",
            "No Class 4.2 spontaneously combustible.",
            "No Class 6.2 infectious substances (including UN 3373).",
            "No Reportable Quantity shipments.",
            "No hazardous waste.",
            "Contiguous US only.",
        ],
    },
    "UPS": {
        "Air": [
            "Follows IATA DGR with UPS variations.",
            "Some classes restricted on passenger aircraft.",
        ],
        "Ground": [
            "Follows DOT 49 CFR.",
            "Specific prohibitions on certain explosives and toxic substances.",
        ],
    },
}

# Check id -> instruction. Order is the order they appear in the prompt.
VALIDATION_CHECKS: dict[str, str] = {
    "prohibited_commodities": "Prohibited commodities for this carrier/service combination",
    "missing_fields": "Missing required data fields",
    "packaging": "Incorrect packing instruction or container type",
    "service_eligibility": "Service eligibility issues (e.g., ADG on non-premium service)",
    "marking_labeling": "Marking and labeling requirements",
    "documentation": "Documentation gaps",
}


def rules_for(carrier: str, mode: str) -> list[str]:
    """Get the rule set for a carrier/mode combination.

    Raises:
        KeyError: If the carrier or mode is unknown
    """
    return list(REGULATION_RULES[carrier][mode])


def regulation_name(mode: str) -> str:
    """Governing regulation for a transport mode."""
    return "IATA DGR" if mode == "Air" else "DOT 49 CFR"


def enabled_checks(toggles: dict[str, bool] | None = None) -> list[str]:
    """Resolve check toggles into the ordered list of enabled instructions.

    Checks missing from ``toggles`` are enabled.
    """
    toggles = toggles or {}
    return [
        text
        for check_id, text in VALIDATION_CHECKS.items()
        if toggles.get(check_id, True)
    ]
