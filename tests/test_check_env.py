"""Tests for spot_validator/check_env.py."""

from spot_validator.check_env import check_catalog, check_import, check_python_version, main


class TestCheckEnv:
    def test_python_version_supported(self):
        assert check_python_version() == []

    def test_missing_module(self):
        ok, msg = check_import("spot_validator_no_such_module", "no-such-dist")
        assert not ok
        assert "no-such-dist" in msg

    def test_present_module(self):
        assert check_import("jsonschema", "jsonschema") == (True, None)

    def test_bad_catalog_reported(self, tmp_path):
        issues = check_catalog(str(tmp_path / "missing.yaml"))
        assert len(issues) == 1
        assert issues[0].startswith("Catalog does not load")

    def test_main_passes(self, capsys):
        assert main([]) == 0
        assert "ENV CHECK: PASS" in capsys.readouterr().out
