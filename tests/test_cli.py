"""
Tests for the devicectl command line tool.
"""

import json

import pytest
import yaml

from conftest import GALAXY_TAB_UA, IPHONE_UA, SAMPLE_TABLES, WINDOWS_CHROME_UA
from device_sense import __version__
from device_sense.cli.devicectl import main, parse_header_args


@pytest.fixture
def rules_file(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(yaml.safe_dump(SAMPLE_TABLES, sort_keys=False))
    return path


class TestParseHeaderArgs:
    """Tests for --header parsing."""

    def test_separators(self):
        headers = parse_header_args(["User-Agent=Foo/1.0", "Accept: text/html", "X-Url=http://a"])
        assert headers == {"User-Agent": "Foo/1.0", "Accept": "text/html", "X-Url": "http://a"}

    def test_value_keeps_later_separators(self):
        assert parse_header_args(["Referer: http://example.com/?a=b"]) == {"Referer": "http://example.com/?a=b"}

    def test_no_separator(self):
        with pytest.raises(ValueError):
            parse_header_args(["User-Agent"])

    def test_none(self):
        assert parse_header_args(None) == {}


class TestDetectCommand:
    """Tests for devicectl detect."""

    def test_json_output(self, capsys):
        assert main(["detect", WINDOWS_CHROME_UA, "--json"]) == 0

        profile = json.loads(capsys.readouterr().out)
        assert profile["type"] == "desktop"
        assert profile["os"] == "Windows"
        assert profile["browser"] == "Chrome"

    def test_text_output(self, capsys):
        assert main(["detect", GALAXY_TAB_UA]) == 0

        out = capsys.readouterr().out
        assert "Chrome on Android (Samsung T870)" in out
        assert "tablet" in out

    def test_headers(self, capsys):
        assert main(["detect", "-H", f"X-Operamini-Phone-UA={IPHONE_UA}", "--json"]) == 0
        assert json.loads(capsys.readouterr().out)["model"] == "iPhone"

    def test_bad_header_argument(self, capsys):
        assert main(["detect", "-H", "nonsense"]) == 2
        assert "NAME=VALUE" in capsys.readouterr().err

    def test_custom_rules(self, rules_file, capsys):
        assert main(["detect", IPHONE_UA, "--rules", str(rules_file), "--json"]) == 0
        assert json.loads(capsys.readouterr().out)["browser"] == "Safari"

    def test_numeric_rule_name(self, tmp_path, capsys):
        tables = dict(SAMPLE_TABLES, phones={3310: {"type": "strpos", "match": "Nokia", "vendor": "Nokia"}})
        path = tmp_path / "rules.yaml"
        path.write_text(yaml.safe_dump(tables, sort_keys=False))

        assert main(["detect", "Nokia3310/1.0", "--rules", str(path)]) == 1
        assert "Non-string name key" in capsys.readouterr().err

    def test_detection_failure(self, tmp_path, capsys):
        path = tmp_path / "rules.yaml"
        path.write_text(yaml.safe_dump({"operating_systems": {}, "browsers": {}}))

        assert main(["detect", IPHONE_UA, "--rules", str(path)]) == 1
        assert "Detection failed" in capsys.readouterr().err


class TestValidateRulesCommand:
    """Tests for devicectl validate-rules."""

    def test_bundled(self, capsys):
        assert main(["validate-rules"]) == 0
        assert "OK" in capsys.readouterr().out

    def test_file(self, rules_file, capsys):
        assert main(["validate-rules", str(rules_file)]) == 0
        assert "phones" in capsys.readouterr().out

    def test_numeric_rule_name(self, tmp_path, capsys):
        path = tmp_path / "rules.yaml"
        path.write_text("phones:\n  3310:\n    type: strpos\n    match: Nokia\n    vendor: Nokia\n")

        assert main(["validate-rules", str(path)]) == 1
        assert "Invalid spec for 3310" in capsys.readouterr().err

    def test_numeric_vendor(self, tmp_path, capsys):
        path = tmp_path / "rules.yaml"
        path.write_text("phones:\n  Nokia3310:\n    type: strpos\n    match: Nokia\n    vendor: 1100\n")

        assert main(["validate-rules", str(path)]) == 1
        assert "Non-string vendor key" in capsys.readouterr().err

    def test_invalid_file(self, tmp_path, capsys):
        path = tmp_path / "rules.yaml"
        path.write_text(yaml.safe_dump({"phones": {"Broken": {"match": "iPhone"}}}))

        assert main(["validate-rules", str(path)]) == 1
        assert "Missing vendor key" in capsys.readouterr().err


def test_version(capsys):
    assert main(["version"]) == 0
    assert __version__ in capsys.readouterr().out


def test_no_command(capsys):
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out
