"""Tests for field validators, step validation and location rules."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from cohort.wizard.locations import LocationDirectory
from cohort.wizard.models import FieldDefinition, FieldType, StepDefinition
from cohort.wizard.validation import ValidationEngine
from cohort.wizard.validators import VALIDATORS


@pytest.fixture
def engine():
    return ValidationEngine()


class TestValidators:
    @pytest.mark.parametrize("phone", ["08031234567", "+2348031234567", "07011234567", "09161234567"])
    def test_nigerian_phone_accepts(self, phone):
        assert VALIDATORS["nigerian_phone"](phone) is None

    @pytest.mark.parametrize("phone", ["0803123456", "06031234567", "08231234567", "+14155550123"])
    def test_nigerian_phone_rejects(self, phone):
        assert VALIDATORS["nigerian_phone"](phone) is not None

    def test_email(self):
        assert VALIDATORS["email"]("ada@example.com") is None
        assert VALIDATORS["email"]("ada@") == "Please enter a valid email address."

    def test_blank_values_left_to_required(self):
        assert VALIDATORS["email"]("") is None
        assert VALIDATORS["date"]("") is None
        assert VALIDATORS["required"]("  ") == "This field is required."

    def test_date_format(self):
        assert VALIDATORS["date"]("2000-01-31") is None
        assert VALIDATORS["date"]("2000-02-30") is not None
        assert VALIDATORS["date"]("31-01-2000") is not None

    def test_future_date(self):
        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        assert VALIDATORS["date"](tomorrow) == "Date cannot be in the future."
        assert VALIDATORS["date"](tomorrow, allow_future="true") is None

    def test_choice(self):
        assert VALIDATORS["choice"]("male", choices="male|female") is None
        assert VALIDATORS["choice"]("other", choices="male|female") is not None
        assert VALIDATORS["choice"](None, choices="male|female") is not None

    def test_length_exact(self):
        assert VALIDATORS["length"]("ABC123", exact="6") is None
        assert VALIDATORS["length"]("ABC12", exact="6") == "Must be exactly 6 characters."


class TestValidationEngine:
    def test_required_short_circuits(self, engine):
        field = FieldDefinition(
            id="email", label="Email", field_type=FieldType.EMAIL,
            required=True, validators=["required", "email"],
        )
        assert engine.validate_field(field, "") == ["This field is required."]

    def test_params_parsed_from_validator_name(self, engine):
        field = FieldDefinition(
            id="code", label="Code", field_type=FieldType.CODE, validators=["length:exact=6"]
        )
        assert engine.validate_field(field, "ABC") == ["Must be exactly 6 characters."]
        assert engine.validate_field(field, "ABC123") == []

    def test_unknown_validator_ignored(self, engine):
        field = FieldDefinition(id="x", label="X", field_type=FieldType.TEXT, validators=["nope"])
        assert engine.validate_field(field, "anything") == []

    def test_custom_validator(self, engine):
        engine.register("upper", lambda v, **_: None if v == v.upper() else "Use capitals.")
        field = FieldDefinition(id="x", label="X", field_type=FieldType.TEXT, validators=["upper"])
        assert engine.validate_field(field, "abc") == ["Use capitals."]

    def test_validate_step_collects_errors_per_field(self, engine):
        step = StepDefinition(
            id="contact",
            title="Contact",
            fields=[
                FieldDefinition(id="email", label="Email", field_type=FieldType.EMAIL,
                                required=True, validators=["email"]),
                FieldDefinition(id="phone", label="Phone", field_type=FieldType.PHONE,
                                required=True, validators=["nigerian_phone"]),
            ],
        )
        result = engine.validate_step(step, {"email": "bad", "phone": ""})
        assert not result.valid
        assert set(result.errors) == {"email", "phone"}


class TestLocations:
    def test_states_loaded(self):
        locations = LocationDirectory()
        assert len(locations) == 37
        assert locations.is_known_state("lagos")
        assert locations.state_label("fct") != "fct"

    def test_lgas_for_state(self):
        locations = LocationDirectory()
        assert "Ikeja" in locations.lgas_for("lagos")
        assert locations.lgas_for(None) == []
        assert locations.lga_options("lagos")[0].value == locations.lgas_for("lagos")[0]

    def test_lga_belongs(self):
        locations = LocationDirectory()
        assert locations.lga_belongs("lagos", "Ikeja")
        assert not locations.lga_belongs("kano", "Ikeja")

    def test_missing_file_gives_empty_directory(self, tmp_path):
        locations = LocationDirectory(tmp_path / "missing.yml")
        assert len(locations) == 0
        assert locations.state_options() == []

    def test_custom_file(self, tmp_path):
        path = tmp_path / "locations.yml"
        path.write_text(
            "states:\n  - {value: abia, label: Abia}\nlgas:\n  abia: [Aba North, Aba South]\n"
        )
        locations = LocationDirectory(path)
        assert [o.label for o in locations.state_options()] == ["Abia"]
        assert locations.lgas_for("abia") == ["Aba North", "Aba South"]


class TestCrossFieldValidation:
    def test_lga_must_belong_to_state(self, engine):
        errors = engine.validate_cross_field({"state": "kano", "lga": "Ikeja"})
        assert errors["lga"] == ["Ikeja is not a Local Government Area of Kano."]

    def test_matching_lga_passes(self, engine):
        assert engine.validate_cross_field({"state": "lagos", "lga": "Ikeja"}) == {}

    def test_unknown_state_not_cross_checked(self, engine):
        assert engine.validate_cross_field({"state": "atlantis", "lga": "Ikeja"}) == {}

    def test_cross_field_error_attached_to_step_field(self, engine):
        step = StepDefinition(
            id="location",
            title="Location",
            fields=[
                FieldDefinition(id="state", label="State", field_type=FieldType.SELECT, required=True),
                FieldDefinition(id="lga", label="LGA", field_type=FieldType.SELECT, required=True),
            ],
        )
        result = engine.validate_step(step, {"state": "kano", "lga": "Ikeja"})
        assert not result.valid
        assert "lga" in result.errors

    def test_cross_field_ignored_for_fields_outside_step(self, engine):
        step = StepDefinition(id="other", title="Other", fields=[])
        result = engine.validate_step(step, {}, context={"state": "kano", "lga": "Ikeja"})
        assert result.valid
