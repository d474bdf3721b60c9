from nebula_desktop.config import DEFAULT_CONFIG, validate_config
from nebula_desktop.config._loader import deep_merge


class TestValidateConfig:
    def test_defaults_are_valid(self) -> None:
        assert validate_config(DEFAULT_CONFIG) == []

    def test_reports_out_of_range_values(self) -> None:
        config = deep_merge(DEFAULT_CONFIG, {"supervisor": {"poll_interval": -1}})

        issues = validate_config(config)

        assert len(issues) == 1
        issue = issues[0]
        assert issue.key == "supervisor.poll_interval"
        assert issue.expected == ">= 0"
        assert issue.actual == -1
        assert issue.severity == "error"

    def test_reports_invalid_enum_values(self) -> None:
        issues = validate_config({"logging": {"format": "xml"}})

        assert [i.key for i in issues] == ["logging.format"]
        assert issues[0].expected is not None

    def test_reports_wrong_types(self) -> None:
        issues = validate_config({"supervisor": {"max_attempts": "many"}})

        assert [i.key for i in issues] == ["supervisor.max_attempts"]

    def test_unknown_sections_allowed_unless_strict(self) -> None:
        config = {"telemetry": {"enabled": True}}

        assert validate_config(config) == []
        assert [i.key for i in validate_config(config, strict=True)] == ["telemetry"]
