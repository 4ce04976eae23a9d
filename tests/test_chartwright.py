import json

import pytest

import chartwright

VALID_CHART = [
    {"beat": 0, "type": "BPM", "bpm": 120},
    {"beat": 1, "lane": 3, "type": "Single"},
]


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "chartwright_config.json"
    path.write_text(json.dumps({}), encoding="utf-8")
    return path


def test_check_reports_valid_chart(tmp_path):
    chart_path = tmp_path / "chart.json"
    chart_path.write_text(json.dumps(VALID_CHART), encoding="utf-8")

    report = chartwright.check_chart_file(chart_path, max_lane=6)

    assert report == {"ok": True, "path": str(chart_path), "notes": 2, "errors": []}


def test_check_reports_every_error(tmp_path):
    chart_path = tmp_path / "chart.json"
    chart_path.write_text(json.dumps([{"beat": 0, "type": "BPM", "bpm": -1}, {"beat": 1, "lane": 10, "type": "Single"}]))

    report = chartwright.check_chart_file(chart_path, max_lane=6)

    assert report["ok"] is False
    assert report["notes"] == 0
    assert len(report["errors"]) == 2


def test_check_command_exit_codes(tmp_path, config_file, capsys):
    good_path = tmp_path / "good.json"
    good_path.write_text(json.dumps(VALID_CHART), encoding="utf-8")
    bad_path = tmp_path / "bad.json"
    bad_path.write_text("[{", encoding="utf-8")

    assert chartwright.main(["--config", str(config_file), "--check", str(good_path)]) == 0
    assert json.loads(capsys.readouterr().out)["ok"] is True

    assert chartwright.main(["--config", str(config_file), "--check", str(bad_path)]) == 2
    bad_report = json.loads(capsys.readouterr().out)
    assert bad_report["ok"] is False
    assert "not valid JSON" in bad_report["errors"][0]
