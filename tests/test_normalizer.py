"""Tests for the record normalizer."""

import math

import pytest

from finboard.normalizer import (
    coerce_bool,
    coerce_optional_int,
    drop_blank_values,
    fold,
    normalize_client_name,
    normalize_subcategory,
    parse_billing_frequency,
    parse_contract_status,
    parse_expense_category,
)


class TestFold:
    def test_strips_lowercases_and_removes_accents(self) -> None:
        assert fold("  NEGOCIACIÓN ") == "negociacion"

    def test_empty(self) -> None:
        assert fold(None) == ""
        assert fold("") == ""


class TestSubcategory:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("asesor fiscal", "Asesoría Fiscal"),
            ("Asesoría Fiscal ", "Asesoría Fiscal"),
            ("ASESOR CONTABLE", "Asesoría Contable"),
            ("asesoría", "Asesoría General"),
        ],
    )
    def test_synonyms(self, raw: str, expected: str) -> None:
        assert normalize_subcategory(raw) == expected

    def test_unknown_label_unchanged(self) -> None:
        assert normalize_subcategory("Hosting AWS") == "Hosting AWS"

    def test_empty(self) -> None:
        assert normalize_subcategory("") == ""
        assert normalize_subcategory(None) == ""

    def test_custom_table(self) -> None:
        assert normalize_subcategory("aws", {"aws": "Cloud"}) == "Cloud"
        # A custom table replaces the defaults
        assert normalize_subcategory("asesor fiscal", {"aws": "Cloud"}) == "asesor fiscal"


class TestCoerceBool:
    @pytest.mark.parametrize("value", [True, "True", "true", "1", 1])
    def test_truthy(self, value: object) -> None:
        assert coerce_bool(value) is True

    @pytest.mark.parametrize("value", [False, "False", "", None, 0, "no"])
    def test_falsy(self, value: object) -> None:
        assert coerce_bool(value) is False


class TestEnumsAndNames:
    def test_contract_status_variants(self) -> None:
        assert parse_contract_status("NEGOCIACION") == "negociación"
        assert parse_contract_status(" Activo ") == "activo"
        assert parse_contract_status("cancelled") == "cancelled"

    def test_billing_frequency(self) -> None:
        assert parse_billing_frequency("Trimestral") == "trimestral"
        assert parse_billing_frequency("") is None
        assert parse_billing_frequency("weekly") is None

    def test_expense_category(self) -> None:
        assert parse_expense_category("financiacion") == "Financiación"
        assert parse_expense_category("Viajes") == "Otros"
        assert parse_expense_category("  ") is None
        assert parse_expense_category("nan") is None

    def test_client_aliases(self) -> None:
        aliases = {"Acme Corp": "ACME"}
        assert normalize_client_name("  Acme Corp ", aliases) == "ACME"
        assert normalize_client_name(" Other ", aliases) == "Other"
        assert normalize_client_name(" Other ") == "Other"


class TestCellCleanup:
    def test_optional_int(self) -> None:
        assert coerce_optional_int("15.0") == 15
        assert coerce_optional_int("") is None
        assert coerce_optional_int("nan") is None
        assert coerce_optional_int(math.nan) is None
        assert coerce_optional_int(7) == 7

    def test_drop_blank_values(self) -> None:
        record = {" a ": "x", "b": "", "c": None, "d": math.nan, "e": 0}
        assert drop_blank_values(record) == {"a": "x", "e": 0}
