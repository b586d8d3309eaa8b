"""Tests for the import configuration loader (fleet_config)."""

from decimal import Decimal

import pytest
import yaml

from fleet_config import DEFAULT_CONFIG_PATH, load_import_config
from fleet_config.loader import compute_checksum, parse_import_config
from fleet_config.schema import DateOrder
from fleet_ingestion import load_session_config
from fleet_kernel.exceptions import ConfigValidationError


def _minimal(**extra) -> dict:
    data = {"fields": {"date": ["date"]}}
    data.update(extra)
    return data


class TestBundledConfig:
    def test_bundled_file_exists(self):
        assert DEFAULT_CONFIG_PATH.is_file()

    def test_loads_providers_in_order(self, import_config):
        assert import_config.aliases.provider_names == ("careem", "uber", "yango", "private")

    def test_multilingual_date_aliases(self, import_config):
        aliases = import_config.aliases.date
        for alias in ("date", "fecha", "datum", "data", "jour", "تاريخ"):
            assert alias in aliases

    def test_defaults(self, import_config):
        d = import_config.defaults
        assert d.date_order is DateOrder.DAY_FIRST
        assert d.delimiter is None
        assert d.max_earning_amount == Decimal("999999.99")
        assert d.default_notes == "Imported from CSV"
        assert d.placeholders.driver == "Unknown Driver"
        assert d.placeholders.vehicle == "Unknown Vehicle"

    def test_source_and_checksum_recorded(self, import_config):
        assert import_config.source == str(DEFAULT_CONFIG_PATH)
        assert len(import_config.checksum) == 64

    def test_load_logs_event(self, captured_logs):
        load_import_config()
        logs = captured_logs()
        loaded = [r for r in logs if r["message"] == "import_config_loaded"]
        assert loaded
        assert loaded[0]["providers"] == ["careem", "uber", "yango", "private"]


class TestParseImportConfig:
    def test_minimal_config(self):
        config = parse_import_config(_minimal())
        assert config.aliases.date == ("date",)
        assert config.aliases.earning_providers == ()
        assert config.version == 1

    def test_provider_name_added_to_its_aliases(self):
        config = parse_import_config(
            _minimal(earning_providers=[{"name": "bolt", "aliases": ["bolt earnings"]}])
        )
        (provider,) = config.aliases.earning_providers
        assert provider.aliases == ("bolt", "bolt earnings")

    def test_missing_date_aliases_rejected(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_import_config({"fields": {"driver": ["driver"]}})
        assert any("fields.date" in p for p in exc_info.value.problems)

    def test_duplicate_provider_rejected(self):
        data = _minimal(earning_providers=[{"name": "Uber"}, {"name": "uber"}])
        with pytest.raises(ConfigValidationError, match="defined twice"):
            parse_import_config(data)

    def test_unknown_date_order_rejected(self):
        with pytest.raises(ConfigValidationError, match="date_order"):
            parse_import_config(_minimal(defaults={"date_order": "year_first"}))

    def test_all_problems_reported(self):
        data = {
            "fields": {},
            "earning_providers": [{"aliases": ["x"]}],
            "defaults": {"progress_every_rows": 0, "delimiter": ";;"},
        }
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_import_config(data, source="broken.yaml")
        err = exc_info.value
        assert err.code == "CONFIG_VALIDATION_FAILED"
        assert err.source == "broken.yaml"
        assert len(err.problems) == 4

    def test_overridden_defaults(self):
        config = parse_import_config(
            _minimal(defaults={
                "date_order": "month_first",
                "delimiter": ";",
                "max_earning_amount": "5000",
                "placeholders": {"driver": "N/A"},
            })
        )
        assert config.defaults.date_order is DateOrder.MONTH_FIRST
        assert config.defaults.delimiter == ";"
        assert config.defaults.max_earning_amount == Decimal("5000")
        assert config.defaults.placeholders.driver == "N/A"
        assert config.defaults.placeholders.vehicle == "Unknown Vehicle"

    def test_zero_earnings_flag_must_be_boolean(self):
        with pytest.raises(ConfigValidationError, match="warn_on_zero_earnings must be true or false"):
            parse_import_config(_minimal(defaults={"warn_on_zero_earnings": "false"}))

    def test_zero_earnings_flag_false(self):
        config = parse_import_config(_minimal(defaults={"warn_on_zero_earnings": False}))
        assert config.defaults.warn_on_zero_earnings is False

    def test_non_mapping_defaults_rejected(self):
        with pytest.raises(ConfigValidationError, match="defaults must be a mapping"):
            parse_import_config(_minimal(defaults=["date_order"]))

    def test_non_mapping_placeholders_rejected(self):
        with pytest.raises(ConfigValidationError, match="placeholders must be a mapping"):
            parse_import_config(_minimal(defaults={"placeholders": "N/A"}))

    def test_top_level_list_rejected(self):
        with pytest.raises(ConfigValidationError, match="top level must be a mapping") as exc_info:
            parse_import_config(["date", "driver"], source="list.yaml")
        assert exc_info.value.source == "list.yaml"

    def test_checksum_stable(self):
        assert compute_checksum(_minimal()) == compute_checksum(_minimal())
        assert compute_checksum(_minimal()) != compute_checksum(_minimal(version=2))


class TestLoadFromPath:
    def test_custom_file(self, tmp_path):
        path = tmp_path / "aliases.yaml"
        path.write_text(yaml.safe_dump({
            "fields": {"date": ["tag"], "driver": ["fahrer"]},
            "earning_providers": [{"name": "bolt"}],
        }), encoding="utf-8")
        config = load_import_config(path)
        assert config.aliases.date == ("tag",)
        assert config.aliases.provider_names == ("bolt",)

    def test_top_level_list_file_rejected(self, tmp_path):
        path = tmp_path / "aliases.yaml"
        path.write_text("- date\n- driver\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="top level must be a mapping"):
            load_import_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_import_config(tmp_path / "nope.yaml")

    def test_session_config_with_overrides(self):
        session = load_session_config(date_order=DateOrder.MONTH_FIRST, parse_workers=4)
        assert session.date_order is DateOrder.MONTH_FIRST
        assert session.parse_workers == 4
        assert session.aliases.provider_names == ("careem", "uber", "yango", "private")
        assert session.cancel_requested is False
