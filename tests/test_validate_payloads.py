"""Tests for spot_validator/validate_payloads.py: record validation, files and CLI modes."""

import json
from pathlib import Path

import pytest

from spot_validator.catalog import load_catalog
from spot_validator.error_log import (
    FILE_ERROR,
    INVALID_FIELD,
    INVALID_FORMAT,
    INVALID_SPOT_DATA_FORMAT,
    INVALID_SPOT_NAME,
    INVALID_SPOT_TYPE,
    INVALID_TITLE,
    MISSING_FIELD,
    MISSING_REQUIRED_SECONDARY_FILTERS,
    ValidationRun,
)
from spot_validator.validate_payloads import (
    _is_missing,
    discover_payload_files,
    main,
    search_required_filters,
    validate_all_files,
    validate_file,
    validate_payload_item,
)


LINE_TITLE = "Gráfico comparativo de precipitação acumulada em 24 horas"


@pytest.fixture(scope="module")
def catalog():
    return load_catalog()


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------

def _required_filters() -> list[dict]:
    return [
        {"name": "Sub-mercados", "value": "SE/CO"},
        {"name": "Sub-mercados", "value": "N"},
        {"name": "Sub-mercados", "value": "S"},
        {"name": "Sub-mercados", "value": "NE"},
        {"name": "Modelos", "value": "Conjunto ONS"},
    ]


def _make_line_item(**overrides) -> dict:
    """A fully valid line spot."""
    item = {
        "spot_name": "line-precip-acumulada-A",
        "spot_type": "line",
        "primary_filters": [{"name": "Bacia", "value": "Paraná"}],
        "secondary_filters": _required_filters(),
        "specific_filters": [],
        "spot_data": {
            "title": LINE_TITLE,
            "y_label": "mm",
            "y_type": "integer",
            "show_legend": True,
            "show_timeline": True,
            "x": {"SE/CO": ["2024-01-01", "2024-01-02"]},
            "y": {"SE/CO": [12.5, 3]},
            "color_ids": [1],
        },
    }
    item.update(overrides)
    return item


def _make_iframe_item(**overrides) -> dict:
    item = {
        "spot_name": "iframe-relatorios-ons",
        "spot_type": "iframe",
        "primary_filters": [],
        "secondary_filters": _required_filters(),
        "specific_filters": [],
        "spot_data": {"title": "Relatórios do ONS", "src": "https://example.org/relatorio"},
    }
    item.update(overrides)
    return item


def _validate(catalog, item, file_name="payload.json", index=0):
    run = ValidationRun()
    ok = validate_payload_item(run, catalog, file_name, item, index)
    return ok, run


def _kinds(run: ValidationRun) -> list[str]:
    return [e.error_type for e in run.errors]


def _write_json(path: Path, data) -> Path:
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return path


# ==========================================================================
# Field presence
# ==========================================================================


class TestIsMissing:
    @pytest.mark.parametrize("value", [None, "", False, 0, 0.0, float("nan")])
    def test_missing(self, value):
        assert _is_missing(value)

    @pytest.mark.parametrize("value", ["x", {}, [], True, 1, -0.5])
    def test_present(self, value):
        assert not _is_missing(value)


# ==========================================================================
# Record validation
# ==========================================================================


class TestValidRecords:
    def test_fully_valid_line_spot(self, catalog):
        ok, run = _validate(catalog, _make_line_item())
        assert ok
        assert run.errors == []
        assert [(c.file_name, c.item_index, c.spot_name) for c in run.compliant] == [
            ("payload.json", 0, "line-precip-acumulada-A"),
        ]

    def test_map_spot_with_arbitrary_payload(self, catalog):
        item = _make_iframe_item(
            spot_type="map",
            spot_data={"title": "Relatórios do ONS", "layers": [{"whatever": 1}]},
        )
        ok, run = _validate(catalog, item)
        assert ok
        assert INVALID_SPOT_DATA_FORMAT not in _kinds(run)


class TestHardStops:
    def test_missing_spot_data(self, catalog):
        item = _make_line_item()
        del item["spot_data"]
        item["secondary_filters"] = "not a list"
        ok, run = _validate(catalog, item)
        assert not ok
        assert _kinds(run) == [MISSING_FIELD]
        assert run.errors[0].message == "Field spot_data is missing"
        assert run.compliant == []

    def test_null_spot_data(self, catalog):
        ok, run = _validate(catalog, _make_line_item(spot_data=None))
        assert _kinds(run) == [MISSING_FIELD]

    def test_missing_title(self, catalog):
        item = _make_line_item()
        del item["spot_data"]["title"]
        ok, run = _validate(catalog, item)
        assert not ok
        assert _kinds(run) == [MISSING_FIELD]
        assert run.errors[0].message == "Field spot_data.title is missing"

    def test_empty_spot_data_object_stops_at_title(self, catalog):
        ok, run = _validate(catalog, _make_iframe_item(spot_data={}))
        assert [e.message for e in run.errors] == ["Field spot_data.title is missing"]

    def test_spot_data_not_an_object(self, catalog):
        ok, run = _validate(catalog, _make_line_item(spot_data="text"))
        assert [e.message for e in run.errors] == ["Field spot_data.title is missing"]

    def test_all_top_level_fields_missing(self, catalog):
        ok, run = _validate(catalog, {})
        assert not ok
        assert [e.message for e in run.errors] == [
            "Field spot_name is missing",
            "Field spot_type is missing",
            "Field spot_data is missing",
        ]
        assert {e.spot_name for e in run.errors} == {"N/A"}

    def test_non_object_record(self, catalog):
        ok, run = _validate(catalog, "line-precip-acumulada-A")
        assert _kinds(run) == [MISSING_FIELD] * 3


class TestCrossReferenceErrors:
    def test_invalid_title_skips_name_check(self, catalog):
        item = _make_line_item()
        item["spot_data"]["title"] = "Gráfico desconhecido"
        ok, run = _validate(catalog, item)
        assert not ok
        assert _kinds(run) == [INVALID_TITLE]
        # the other checks still ran and passed
        assert len(run.compliant) == 1

    def test_name_not_allowed_for_title(self, catalog):
        ok, run = _validate(catalog, _make_line_item(spot_name="line-anomalias-climaticas-A"))
        assert _kinds(run) == [INVALID_SPOT_NAME]
        assert "line-anomalias-climaticas-A" in run.errors[0].message

    def test_invalid_type_skips_schema_check(self, catalog):
        ok, run = _validate(catalog, _make_line_item(spot_type="pie", spot_data={"title": LINE_TITLE}))
        assert _kinds(run) == [INVALID_SPOT_TYPE]

    def test_missing_type_reported_twice(self, catalog):
        item = _make_line_item()
        del item["spot_type"]
        ok, run = _validate(catalog, item)
        assert _kinds(run) == [MISSING_FIELD, INVALID_SPOT_TYPE]

    def test_missing_name_is_not_listed(self, catalog):
        item = _make_line_item()
        del item["spot_name"]
        ok, run = _validate(catalog, item)
        assert _kinds(run) == [MISSING_FIELD, INVALID_SPOT_NAME]
        assert run.compliant[0].spot_name == "N/A"

    def test_errors_accumulate(self, catalog):
        item = _make_line_item(spot_name="wrong", spot_type="pie", primary_filters=None)
        item["secondary_filters"] = item["secondary_filters"][:4]
        ok, run = _validate(catalog, item)
        assert _kinds(run) == [
            INVALID_SPOT_NAME,
            INVALID_SPOT_TYPE,
            INVALID_FIELD,
            MISSING_REQUIRED_SECONDARY_FILTERS,
        ]


class TestStructureAndFilters:
    def test_iframe_without_src(self, catalog):
        ok, run = _validate(catalog, _make_iframe_item(spot_data={"title": "Relatórios do ONS"}))
        assert not ok
        assert _kinds(run) == [INVALID_SPOT_DATA_FORMAT]
        assert run.errors[0].message.startswith('Invalid spot_data format for spot_type "iframe". Errors: ')
        assert "'src' is a required property" in run.errors[0].message

    def test_each_non_array_filter_field(self, catalog):
        item = _make_line_item(primary_filters={}, specific_filters="none")
        del item["secondary_filters"]
        ok, run = _validate(catalog, item)
        assert [e.message for e in run.errors if e.error_type == INVALID_FIELD] == [
            "primary_filters must be an array",
            "secondary_filters must be an array",
            "specific_filters must be an array",
        ]
        assert _kinds(run)[-1] == MISSING_REQUIRED_SECONDARY_FILTERS

    def test_four_secondary_filters(self, catalog):
        filters = [f for f in _required_filters() if f["value"] != "S"]
        ok, run = _validate(catalog, _make_line_item(secondary_filters=filters))
        assert _kinds(run) == [MISSING_REQUIRED_SECONDARY_FILTERS]
        message = run.errors[0].message
        assert "Expected 5 filters, found 4." in message
        assert "Missing: [Sub-mercados: S]." in message
        assert "Extra:" not in message
        assert run.compliant == []

    def test_five_filters_with_duplicate(self, catalog):
        filters = _required_filters()
        filters[1] = dict(filters[0])
        ok, run = _validate(catalog, _make_line_item(secondary_filters=filters))
        assert _kinds(run) == [MISSING_REQUIRED_SECONDARY_FILTERS]
        assert "Missing: [Sub-mercados: N]." in run.errors[0].message


# ==========================================================================
# Files
# ==========================================================================


class TestValidateFile:
    def test_counts(self, catalog, tmp_path, capsys):
        path = _write_json(tmp_path / "spots.json", [_make_line_item(), _make_iframe_item(spot_type="pie")])
        run = ValidationRun()
        outcome = validate_file(run, catalog, path)
        assert (outcome.valid_items, outcome.invalid_items, outcome.total_items) == (1, 1, 2)
        assert not outcome.valid
        assert run.errors[0].item_index == 1
        assert "✅ Valid items: 1" in capsys.readouterr().out

    def test_empty_array_is_valid(self, catalog, tmp_path):
        outcome = validate_file(ValidationRun(), catalog, _write_json(tmp_path / "e.json", []))
        assert outcome.valid

    def test_object_instead_of_array(self, catalog, tmp_path):
        run = ValidationRun()
        outcome = validate_file(run, catalog, _write_json(tmp_path / "obj.json", _make_line_item()))
        assert not outcome.valid
        assert _kinds(run) == [INVALID_FORMAT]
        assert run.errors[0].item_index == -1
        assert run.errors[0].spot_name == "N/A"

    def test_unparseable_json(self, catalog, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[{\"spot_name\": ", encoding="utf-8")
        run = ValidationRun()
        assert not validate_file(run, catalog, path).valid
        assert _kinds(run) == [FILE_ERROR]
        assert run.errors[0].message.startswith("Error processing file:")

    def test_not_utf8(self, catalog, tmp_path):
        path = tmp_path / "latin.json"
        path.write_bytes('["Índices"]'.encode("latin-1"))
        run = ValidationRun()
        validate_file(run, catalog, path)
        assert _kinds(run) == [FILE_ERROR]

    def test_missing_file(self, catalog, tmp_path):
        run = ValidationRun()
        validate_file(run, catalog, tmp_path / "gone.json")
        assert _kinds(run) == [FILE_ERROR]


class TestDiscoverPayloadFiles:
    def test_filters_and_sorts(self, tmp_path):
        for name in ("b.json", "a.json", "package.json", "tsconfig.json", "notes.txt", "log.log"):
            (tmp_path / name).write_text("[]", encoding="utf-8")
        (tmp_path / "dir.json").mkdir()
        assert [p.name for p in discover_payload_files(tmp_path)] == ["a.json", "b.json"]

    def test_empty_directory(self, tmp_path):
        assert discover_payload_files(tmp_path) == []


# ==========================================================================
# Modes
# ==========================================================================


def _make_payload_dir(tmp_path: Path) -> Path:
    payloads = tmp_path / "payloads"
    payloads.mkdir()
    bad_filters = [f for f in _required_filters() if f["value"] != "NE"]
    _write_json(payloads / "a.json", [
        _make_line_item(),
        _make_line_item(secondary_filters=bad_filters),
        _make_iframe_item(spot_name="iframe-FOCUS-report", secondary_filters=bad_filters,
                          spot_data={"title": "Relatório Focus", "src": "https://example.org"}),
    ])
    _write_json(payloads / "b.json", {"not": "an array"})
    _write_json(payloads / "c.json", [_make_iframe_item()])
    return payloads


def _classify(run: ValidationRun) -> list[tuple[str, bool]]:
    return [(s.spot_name, s.has_compliant_default) for s in run.filter_compliance()]


class TestValidateAllFiles:
    def test_full_run(self, catalog, tmp_path, capsys):
        payloads = _make_payload_dir(tmp_path)
        log_file = tmp_path / "log.log"
        run = validate_all_files(payloads, catalog, log_file)

        assert run.errors_by_kind() == {MISSING_REQUIRED_SECONDARY_FILTERS: 2, INVALID_FORMAT: 1}
        assert {c.spot_name for c in run.compliant} == {"line-precip-acumulada-A", "iframe-relatorios-ons"}

        out = capsys.readouterr().out
        assert "✅ Valid files: 1" in out
        assert "❌ Files with errors: 2" in out
        assert '"line-precip-acumulada-A" - default filter configured' in out
        assert '"iframe-FOCUS-report" - Total: 1 items' in out

        log_text = log_file.read_text(encoding="utf-8")
        assert "📄 FILE: a.json" in log_text
        assert "📄 FILE: b.json" in log_text
        assert f"   - {INVALID_FORMAT}: 1 occurrences" in log_text

    def test_clean_run_still_writes_log(self, catalog, tmp_path, capsys):
        payloads = tmp_path / "ok"
        payloads.mkdir()
        _write_json(payloads / "ok.json", [_make_line_item()])
        log_file = tmp_path / "log.log"
        run = validate_all_files(payloads, catalog, log_file)
        assert run.errors == []
        assert "🎉 All files are valid!" in capsys.readouterr().out
        assert "🔍 Total errors: 0" in log_file.read_text(encoding="utf-8")

    def test_no_files(self, catalog, tmp_path, capsys):
        log_file = tmp_path / "log.log"
        run = validate_all_files(tmp_path, catalog, log_file)
        assert run.errors == []
        assert not log_file.exists()
        assert "No JSON payload file found" in capsys.readouterr().err

    def test_idempotent(self, catalog, tmp_path):
        payloads = _make_payload_dir(tmp_path)
        first = validate_all_files(payloads, catalog, tmp_path / "1.log")
        second = validate_all_files(payloads, catalog, tmp_path / "2.log")
        assert first.errors_by_kind() == second.errors_by_kind()
        assert _classify(first) == _classify(second)


class TestSearchRequiredFilters:
    def test_only_compliant_items_recorded(self, catalog, tmp_path, capsys):
        payloads = _make_payload_dir(tmp_path)
        run = search_required_filters(payloads, catalog)
        assert run.errors == []
        assert [(Path(c.file_name).name, c.item_index) for c in run.compliant] == [("a.json", 0), ("c.json", 0)]
        out = capsys.readouterr().out
        assert "🎯 SEARCH RESULTS" in out
        assert "❌ The file does not contain an array of objects" in out

    def test_skips_items_without_filters(self, catalog, tmp_path, capsys):
        item = _make_line_item()
        del item["secondary_filters"]
        _write_json(tmp_path / "x.json", [item, 7, _make_line_item(spot_name=None)])
        run = search_required_filters(tmp_path, catalog)
        assert [(c.item_index, c.spot_name) for c in run.compliant] == [(2, "N/A")]


class TestMain:
    def test_config_mode(self, tmp_path, capsys):
        assert main(["--config", "--dir", str(tmp_path)]) == 0
        out = capsys.readouterr().out
        assert "📋 VALID SPOT TYPES:" in out
        assert "madden-julian-oscilacao" in out
        assert not (tmp_path / "log.log").exists()

    def test_search_mode(self, tmp_path, capsys):
        payloads = _make_payload_dir(tmp_path)
        assert main(["--search-filters", "--dir", str(payloads), "--log-file", str(tmp_path / "log.log")]) == 0
        assert "📍 Total items found: 2" in capsys.readouterr().out
        assert not (tmp_path / "log.log").exists()

    def test_default_mode(self, tmp_path, capsys):
        payloads = _make_payload_dir(tmp_path)
        log_file = tmp_path / "out.log"
        assert main(["--dir", str(payloads), "--log-file", str(log_file)]) == 0
        assert log_file.exists()

    def test_modes_are_exclusive(self, capsys):
        with pytest.raises(SystemExit):
            main(["--config", "--search-filters"])

    def test_bad_catalog(self, tmp_path, capsys):
        assert main(["--config", "--catalog", str(tmp_path / "missing.yaml")]) == 2
        assert "ERROR:" in capsys.readouterr().err
