"""Custom field value validation tests."""
import pytest

from business.custom_fields import (
    BooleanField, DateField, FileField, NumberField, SelectField, TextField,
    to_spec, validate_value, validate_values,
)


def _define(db, name, kind, **extra):
    payload = {"name": name, "label": name.title(), "type": kind, "entityType": "client"}
    payload.update(extra)
    return db.custom_fields.create(payload)


class TestToSpec:
    """Field definitions to tagged specs."""

    @pytest.mark.parametrize("kind, spec_type", [
        ("text", TextField),
        ("number", NumberField),
        ("date", DateField),
        ("boolean", BooleanField),
        ("file", FileField),
    ])
    def test_plain_kinds(self, db, kind, spec_type):
        """Non-select kinds map to their spec types and keep required."""
        spec = to_spec(_define(db, "x", kind, required=True))
        assert isinstance(spec, spec_type)
        assert spec.required is True

    def test_select_carries_options(self, db):
        """Select specs carry their options as a tuple."""
        spec = to_spec(_define(db, "area", "select", options=["Marina", "Downtown"]))
        assert isinstance(spec, SelectField)
        assert spec.options == ("Marina", "Downtown")


class TestValidateValue:
    """Single value checks per field kind."""

    @pytest.mark.parametrize("value", [5, 2.5, "42", "-1.5"])
    def test_number_ok(self, value):
        """Numbers and numeric strings pass."""
        assert validate_value(NumberField("budget", "Budget"), value) is None

    @pytest.mark.parametrize("value", ["lots", True, [1]])
    def test_number_rejected(self, value):
        """Non-numeric values and booleans fail."""
        assert validate_value(NumberField("budget", "Budget"), value) == "must be a number"

    @pytest.mark.parametrize("value", ["2025-06-01", "2025-06-01T10:00:00Z"])
    def test_date_ok(self, value):
        """ISO dates and timestamps pass."""
        assert validate_value(DateField("d", "D"), value) is None

    def test_date_rejected(self):
        """Free text is not a date."""
        assert validate_value(DateField("d", "D"), "someday") is not None

    def test_select(self):
        """Only listed options are accepted."""
        field = SelectField("area", "Area", options=("Marina", "Downtown"))
        assert validate_value(field, "Marina") is None
        assert validate_value(field, "Deira") == "must be one of: Marina, Downtown"

    @pytest.mark.parametrize("value", [True, False, "true", "FALSE"])
    def test_boolean_ok(self, value):
        """Booleans and true/false strings pass."""
        assert validate_value(BooleanField("b", "B"), value) is None

    def test_boolean_rejected(self):
        """Other strings are not booleans."""
        assert validate_value(BooleanField("b", "B"), "maybe") == "must be true or false"

    def test_text_and_file(self):
        """Text needs a string; files need a string reference."""
        assert validate_value(TextField("t", "T"), "hello") is None
        assert validate_value(TextField("t", "T"), 5) == "must be text"
        assert validate_value(FileField("f", "F"), "https://files.example.com/a.pdf") is None
        assert validate_value(FileField("f", "F"), {"name": "a.pdf"}) == "must be a file reference"

    def test_blank_values(self):
        """Blank values pass unless the field is required."""
        assert validate_value(TextField("t", "T"), None) is None
        assert validate_value(TextField("t", "T", required=True), "  ") == "is required"
        assert validate_value(NumberField("n", "N", required=True), None) == "is required"


class TestValidateValues:
    """Batch validation against definitions."""

    def test_collects_errors_by_field(self, db):
        """Errors are reported per field with the label; unknown keys are ignored."""
        fields = [
            _define(db, "budget", "number", required=True),
            _define(db, "area", "select", options=["Marina"]),
            _define(db, "notes", "text"),
        ]
        errors = validate_values(fields, {"area": "Deira", "unknown": "ignored"})
        assert errors == [
            {"field": "budget", "message": "Budget is required"},
            {"field": "area", "message": "Area must be one of: Marina"},
        ]

    def test_all_valid(self, db):
        """Valid values give no errors."""
        fields = [_define(db, "budget", "number"), _define(db, "vip", "boolean")]
        assert validate_values(fields, {"budget": "1000", "vip": True}) == []
