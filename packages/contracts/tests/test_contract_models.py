"""Tests for Pydantic models in contracts package.

Focus: lenient parsing of model output, shipment rules, immutability
"""

import pytest
from pydantic import ValidationError

from hazmat_contracts import (
    ExtractionPhase,
    KnowledgeServerConfig,
    ProgressEvent,
    ScreenshotIdentity,
    SdsExtraction,
    Severity,
    ShipmentData,
    SourceContext,
    SourceType,
    Suggestion,
    ValidationIssue,
    ValidationResult,
    ValidationStatus,
)


def air_shipment(**overrides) -> dict:
    data = {
        "carrier": "FedEx",
        "mode": "Air",
        "service": "Priority Overnight",
        "weight": 4.5,
        "weightUnit": "kg",
        "unNumber": "1263",
        "properShippingName": "Paint",
        "hazardClass": "3",
        "packingGroup": "II",
        "quantity": 4,
        "quantityUnit": "L",
        "emergencyPhone": "1-800-424-9300",
        "packingInstruction": "353",
        "signatoryName": "Jo Smith",
        "signatoryTitle": "Shipping Lead",
        "signatoryPlace": "Memphis, TN",
    }
    data.update(overrides)
    return data


class TestSourceContext:
    """Test SourceContext model."""

    def test_frozen(self):
        ctx = SourceContext(
            source_name="regs (IATA)",
            source_type=SourceType.REMOTE_SERVER,
            content="text",
            weight=80,
        )

        with pytest.raises(ValidationError):
            ctx.weight = 10

    def test_weight_range(self):
        with pytest.raises(ValidationError):
            SourceContext(
                source_name="x", source_type=SourceType.SYSTEM, content="", weight=101
            )


class TestKnowledgeServerConfig:
    """Test persisted server configuration."""

    def test_defaults(self):
        config = KnowledgeServerConfig(name="regs", url="http://localhost:8000/sse")

        assert config.enabled is True
        assert config.weight == 50

    def test_empty_url_rejected(self):
        with pytest.raises(ValidationError):
            KnowledgeServerConfig(name="regs", url="")


class TestValidationIssue:
    """Test permissive parsing of model-produced issues."""

    def test_camel_case_aliases(self):
        issue = ValidationIssue.model_validate(
            {
                "description": "Missing PI",
                "confidence": 95,
                "regulationReference": "IATA DGR 5.0.2",
                "recommendation": "Add PI 353",
                "severity": "Critical",
            }
        )

        assert issue.regulation_reference == "IATA DGR 5.0.2"
        assert issue.severity == Severity.CRITICAL
        assert issue.explanation is None

    def test_field_names_accepted(self):
        issue = ValidationIssue(description="x", regulation_reference="49 CFR 172")

        assert issue.regulation_reference == "49 CFR 172"

    def test_missing_reference_defaults_empty(self):
        issue = ValidationIssue.model_validate(
            {"description": "x", "confidence": 50, "severity": "Info"}
        )

        assert issue.regulation_reference == ""
        assert issue.recommendation == ""

    def test_null_reference_becomes_empty(self):
        issue = ValidationIssue.model_validate(
            {"description": "x", "regulationReference": None}
        )

        assert issue.regulation_reference == ""

    @pytest.mark.parametrize(
        "raw,expected",
        [(87.6, 88), (0.2, 0), (150, 100), (-5, 0), ("72", 72)],
    )
    def test_confidence_rounded_and_clamped(self, raw, expected):
        issue = ValidationIssue(description="x", confidence=raw)

        assert issue.confidence == expected

    def test_confidence_non_numeric_rejected(self):
        with pytest.raises(ValidationError):
            ValidationIssue(description="x", confidence="high")

    def test_severity_case_insensitive(self):
        assert ValidationIssue(description="x", severity="WARNING").severity == Severity.WARNING
        assert ValidationIssue(description="x", severity="critical").severity == Severity.CRITICAL

    def test_unknown_severity_rejected(self):
        with pytest.raises(ValidationError):
            ValidationIssue(description="x", severity="Catastrophic")


class TestValidationResult:
    """Test ValidationResult status parsing."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("pass", ValidationStatus.PASS),
            ("FAIL", ValidationStatus.FAIL),
            ("Warnings", ValidationStatus.WARNINGS),
            ("Warning", ValidationStatus.WARNINGS),
        ],
    )
    def test_status_case_insensitive(self, raw, expected):
        assert ValidationResult.model_validate({"status": raw}).status == expected

    def test_null_issues_becomes_empty(self):
        result = ValidationResult.model_validate({"status": "Pass", "issues": None})

        assert result.issues == []

    def test_invalid_status_rejected(self):
        with pytest.raises(ValidationError):
            ValidationResult.model_validate({"status": "Maybe"})


class TestShipmentData:
    """Test shipment schema rules."""

    def test_valid_air_shipment(self):
        shipment = ShipmentData.model_validate(air_shipment())

        assert shipment.un_number == "UN1263"
        assert shipment.regulation == "IATA DGR"
        assert shipment.cargo_aircraft_only is False

    @pytest.mark.parametrize("raw", ["un1263", "UN 1263", "un-1263", " UN1263 "])
    def test_un_number_normalized(self, raw):
        assert ShipmentData.model_validate(air_shipment(unNumber=raw)).un_number == "UN1263"

    @pytest.mark.parametrize("raw", ["12634", "UNX263", "", "NA1993"])
    def test_un_number_format_rejected(self, raw):
        with pytest.raises(ValidationError, match="UNxxxx"):
            ShipmentData.model_validate(air_shipment(unNumber=raw))

    def test_air_requires_packing_instruction(self):
        with pytest.raises(ValidationError, match="packing_instruction"):
            ShipmentData.model_validate(air_shipment(packingInstruction=None))

    def test_air_requires_signatory_details(self):
        with pytest.raises(ValidationError, match="signatory_title, signatory_place"):
            ShipmentData.model_validate(
                air_shipment(signatoryTitle="", signatoryPlace=None)
            )

    def test_ground_requires_offeror(self):
        data = air_shipment(mode="Ground", service="Ground")

        with pytest.raises(ValidationError, match="offeror_name"):
            ShipmentData.model_validate(data)

        shipment = ShipmentData.model_validate({**data, "offerorName": "Acme Corp"})
        assert shipment.regulation == "DOT 49 CFR"

    def test_weight_must_be_positive(self):
        with pytest.raises(ValidationError):
            ShipmentData.model_validate(air_shipment(weight=0))

    def test_emergency_phone_min_length(self):
        with pytest.raises(ValidationError):
            ShipmentData.model_validate(air_shipment(emergencyPhone="911"))

    def test_blank_packing_group_is_none(self):
        assert ShipmentData.model_validate(air_shipment(packingGroup="")).packing_group is None


class TestSdsExtraction:
    """Test SDS extraction parsing."""

    def test_parses_model_output(self):
        sds = SdsExtraction.model_validate(
            {
                "unNumber": "1090",
                "properShippingName": "Acetone",
                "hazardClass": "3",
                "packingGroup": "II",
                "technicalName": None,
                "confidence": {"unNumber": 98.4, "technicalName": 0},
            }
        )

        assert sds.un_number == "UN1090"
        assert sds.technical_name == ""
        assert sds.confidence == {"un_number": 98, "technical_name": 0}
        assert sds.found_fields() == {
            "un_number": "UN1090",
            "proper_shipping_name": "Acetone",
            "hazard_class": "3",
            "packing_group": "II",
        }

    def test_non_dict_confidence_ignored(self):
        assert SdsExtraction.model_validate({"confidence": "n/a"}).confidence == {}


class TestScreenshotIdentity:
    """Test stage-1 identity and search terms."""

    def test_search_terms(self):
        identity = ScreenshotIdentity.model_validate(
            {"unNumber": "un 1993", "properShippingName": "Flammable liquid, n.o.s."}
        )

        assert identity.search_terms() == ["UN1993", "Flammable liquid, n.o.s."]

    def test_search_terms_skip_empty(self):
        identity = ScreenshotIdentity.model_validate({"unNumber": None, "properShippingName": "Paint"})

        assert identity.search_terms() == ["Paint"]


class TestSuggestion:
    """Test Suggestion coercion."""

    def test_numeric_value_stringified(self):
        suggestion = Suggestion.model_validate({"value": 353, "confidence": 90.6})

        assert suggestion.value == "353"
        assert suggestion.confidence == 91


class TestProgressEvent:
    """Test ProgressEvent bounds."""

    def test_percent_range(self):
        with pytest.raises(ValidationError):
            ProgressEvent(phase=ExtractionPhase.RECOGNIZING, percent=120)

    def test_phase_from_string(self):
        assert ProgressEvent(phase="rasterizing").phase == ExtractionPhase.RASTERIZING
