"""Tests for ParameterService."""

from decimal import Decimal

import pytest

from billing_kernel.db.unit_of_work import UnitOfWork
from billing_kernel.exceptions import CorruptStateError, InvalidArgumentError
from billing_kernel.services.parameter_service import ParameterService, parse_tax_rate


class TestParseTaxRate:
    @pytest.mark.parametrize("raw, expected", [("12", "12"), ("12.5", "12.5"), (" 0 ", "0")])
    def test_valid(self, raw, expected):
        assert parse_tax_rate("tax", raw) == Decimal(expected)

    @pytest.mark.parametrize("raw", [None, "", "twelve", "-1", "NaN", "Infinity"])
    def test_invalid(self, raw):
        with pytest.raises(CorruptStateError):
            parse_tax_rate("tax", raw)


class TestTaxRate:
    def test_reads_decimal(self, session_factory, settings, reference_data):
        with UnitOfWork(session_factory) as uow:
            assert ParameterService(uow.session, settings).tax_rate() == Decimal("12")

    def test_missing_rate_is_corrupt(self, session_factory, settings, captured_logs):
        with pytest.raises(CorruptStateError):
            with UnitOfWork(session_factory) as uow:
                ParameterService(uow.session, settings).tax_rate()

        logs = [r for r in captured_logs() if r["message"] == "tax_rate_parameter_corrupt"]
        assert logs and logs[0]["level"] == "ERROR"


class TestSetValue:
    def test_creates_and_updates(self, session_factory, settings, reference_data, read_parameter):
        with UnitOfWork(session_factory) as uow:
            service = ParameterService(uow.session, settings)
            service.set_value("company_name", "Acme")
            info = service.set_value("company_name", "Acme S.A.")

        assert info.value == "Acme S.A."
        assert read_parameter("company_name") == "Acme S.A."

    def test_updates_tax_rate(self, session_factory, settings, reference_data):
        with UnitOfWork(session_factory) as uow:
            ParameterService(uow.session, settings).set_value(settings.tax_rate_parameter, "15")
        with UnitOfWork(session_factory) as uow:
            assert ParameterService(uow.session, settings).tax_rate() == Decimal("15")

    def test_rejects_invalid_tax_rate(self, session_factory, settings, reference_data, read_parameter):
        with pytest.raises(InvalidArgumentError):
            with UnitOfWork(session_factory) as uow:
                ParameterService(uow.session, settings).set_value(settings.tax_rate_parameter, "-5")
        assert read_parameter(settings.tax_rate_parameter) == "12"

    def test_refuses_sequence_counters(self, session_factory, settings, reference_data, read_parameter):
        for name in settings.sequence_names:
            with pytest.raises(InvalidArgumentError):
                with UnitOfWork(session_factory) as uow:
                    ParameterService(uow.session, settings).set_value(name, "1")
        assert read_parameter(settings.invoice_sequence) == "100"

    @pytest.mark.parametrize("name, value", [("", "x"), ("  ", "x"), ("k", ""), ("k", None)])
    def test_rejects_blank(self, session_factory, settings, name, value):
        with pytest.raises(InvalidArgumentError):
            with UnitOfWork(session_factory) as uow:
                ParameterService(uow.session, settings).set_value(name, value)


class TestListAndInitialize:
    def test_list_is_ordered_by_name(self, session_factory, settings, reference_data):
        with UnitOfWork(session_factory) as uow:
            names = [p.name for p in ParameterService(uow.session, settings).list_parameters()]
        assert names == sorted(names)
        assert settings.tax_rate_parameter in names

    def test_initialize_defaults_on_empty_store(self, session_factory, settings, read_parameter):
        with UnitOfWork(session_factory) as uow:
            created = ParameterService(uow.session, settings).initialize_defaults()

        assert set(created) == {
            settings.invoice_sequence,
            settings.invoice_line_sequence,
            settings.tax_rate_parameter,
        }
        assert read_parameter(settings.invoice_sequence) == "0"
        assert read_parameter(settings.tax_rate_parameter) == settings.default_tax_rate

    def test_initialize_defaults_keeps_existing(self, session_factory, settings, reference_data, read_parameter):
        with UnitOfWork(session_factory) as uow:
            assert ParameterService(uow.session, settings).initialize_defaults() == []
        assert read_parameter(settings.invoice_sequence) == "100"
