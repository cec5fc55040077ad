import json

import pytest

from infrastructure.settings import JsonSettings


@pytest.fixture()
def settings_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "layout": {"page_capacity": "900", "row_height": 250},
                "report": {"show_dates": "no", "group_order": "chronological"},
                "dashboard": {"timeout_seconds": "12.5", "company_id": True},
            }
        ),
        encoding="utf-8",
    )
    return path


def test_dotted_access_and_defaults(settings_file):
    settings = JsonSettings(settings_file)

    assert settings.get("report.group_order") == "chronological"
    assert settings.get("report.missing", "x") == "x"
    assert settings.get("layout.row_height.deeper") is None


def test_typed_getters(settings_file):
    settings = JsonSettings(settings_file)

    assert settings.get_int("layout.page_capacity", 1) == 900
    assert settings.get_int("layout.group_gap", 36) == 36
    assert settings.get_float("dashboard.timeout_seconds", 30.0) == 12.5
    assert settings.get_bool("report.show_dates", True) is False
    with pytest.raises(ValueError, match="dashboard.company_id"):
        settings.get_int("dashboard.company_id", 0)
    with pytest.raises(ValueError, match="report.group_order"):
        settings.get_bool("report.group_order", False)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        JsonSettings(tmp_path / "nope.json")
