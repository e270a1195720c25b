import pytest
from pydantic import ValidationError

from leave_engine.config.settings import Settings


def test_defaults():
    config = Settings(_env_file=None)

    assert config.DEFAULT_WORKING_DAYS == ["MON", "TUE", "WED", "THU", "FRI"]
    assert config.DEFAULT_WORKFLOW_STEPS == ["MANAGER"]
    assert config.ALLOW_NEGATIVE_BALANCE is False
    assert config.EXCEPTIONAL_LEAVE_CODE == "EXCEPTIONAL"
    assert config.is_sqlite()
    assert config.is_development()


def test_code_lists_accept_comma_separated_strings():
    config = Settings(_env_file=None, DEFAULT_WORKFLOW_STEPS=" manager, hr ,", DEFAULT_WORKING_DAYS="mon,tue")
    assert config.DEFAULT_WORKFLOW_STEPS == ["MANAGER", "HR"]
    assert config.DEFAULT_WORKING_DAYS == ["MON", "TUE"]


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DEFAULT_WORKFLOW_STEPS", '["manager", "hr"]')
    monkeypatch.setenv("ALLOW_NEGATIVE_BALANCE", "true")
    monkeypatch.setenv("LOG_FORMAT", "JSON")
    monkeypatch.setenv("PROJECT_NAME", "Leave Engine Test")

    config = Settings(_env_file=None)

    assert config.DEFAULT_WORKFLOW_STEPS == ["MANAGER", "HR"]
    assert config.ALLOW_NEGATIVE_BALANCE is True
    assert config.LOG_FORMAT == "json"
    assert config.APP_NAME == "Leave Engine Test"


@pytest.mark.parametrize("field, value", [("LOG_LEVEL", "LOUD"), ("LOG_FORMAT", "xml")])
def test_invalid_logging_options(field, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})
