"""Tests for strategy definitions and parsing."""

import pytest

from signalcore.rules.strategy import (
    RULE_FIELDS,
    Engine,
    EngineWeights,
    Operator,
    Rule,
    StrategyDefinition,
    default_strategy,
    engine_score_path,
    field_label,
    new_rule,
    validate_definition,
)


@pytest.fixture
def strategy_payload():
    """Create a strategy payload as sent by the create-strategy form."""
    return {
        "name": "Momentum",
        "target_assets": ["btc", "eth"],
        "engine_weights": {
            "sentiment": 0.35,
            "trend": 0.25,
            "fundamental": 0.15,
            "event_risk": 0.15,
            "liquidity": 0.10,
        },
        "entry_rules": [
            {"field": "final_score", "operator": ">", "value": 0.5},
            {"field": "metadata.engine_details.trend.score", "operator": ">=", "value": "0.1"},
        ],
        "exit_rules": [
            {"field": "final_score", "operator": "<", "value": -0.3},
        ],
    }


class TestOperator:
    """Tests for Operator enum."""

    def test_operator_values(self):
        """Test operator enum values."""
        assert [o.value for o in Operator] == [">", "<", ">=", "<="]

    def test_compare(self):
        """Test boundary behavior of each operator."""
        assert Operator.GT.compare(0.5, 0.5) is False
        assert Operator.GE.compare(0.5, 0.5) is True
        assert Operator.LT.compare(0.5, 0.5) is False
        assert Operator.LE.compare(0.5, 0.5) is True


class TestRule:
    """Tests for Rule parsing."""

    def test_from_dict(self):
        """Test parsing the wire form."""
        rule = Rule.from_dict({"field": "final_score", "operator": "<=", "value": -0.2})

        assert rule == Rule("final_score", Operator.LE, -0.2)

    def test_to_dict(self):
        """Test the wire form is reproduced."""
        data = {"field": "final_score", "operator": ">", "value": 0.5}

        assert Rule.from_dict(data).to_dict() == data

    def test_unknown_operator(self):
        """Test an unsupported operator is rejected."""
        with pytest.raises(ValueError, match="Unknown operator"):
            Rule.from_dict({"field": "final_score", "operator": "==", "value": 0.5})

    def test_missing_field(self):
        """Test a rule without a field path is rejected."""
        with pytest.raises(ValueError, match="field path"):
            Rule.from_dict({"operator": ">", "value": 0.5})

    def test_non_numeric_value(self):
        """Test a non-numeric threshold is rejected."""
        with pytest.raises(ValueError, match="must be a number"):
            Rule.from_dict({"field": "final_score", "operator": ">", "value": "high"})

    def test_boolean_value(self):
        """Test booleans are not accepted as thresholds."""
        with pytest.raises(ValueError):
            Rule.from_dict({"field": "final_score", "operator": ">", "value": True})

    def test_value_not_range_checked(self):
        """Test thresholds outside -1..1 are kept."""
        assert Rule.from_dict({"field": "final_score", "operator": ">", "value": 5}).value == 5.0

    def test_describe(self):
        """Test human readable rule text."""
        assert Rule("final_score", Operator.GT, 0.5).describe() == "Final Score > 0.5"
        assert Rule("custom.path", Operator.LT, -0.3).describe() == "custom.path < -0.3"


class TestEngineWeights:
    """Tests for EngineWeights."""

    def test_total(self, default_weights):
        """Test the weight total."""
        assert default_weights.total == pytest.approx(1.0)

    def test_missing_engine_defaults_to_zero(self):
        """Test absent engines weigh nothing."""
        weights = EngineWeights.from_dict({"sentiment": 0.6, "trend": 0.4})

        assert weights.liquidity == 0.0
        assert weights.total == pytest.approx(1.0)

    def test_unknown_engine(self):
        """Test unknown engine names are rejected."""
        with pytest.raises(ValueError, match="momentum"):
            EngineWeights.from_dict({"sentiment": 0.5, "momentum": 0.5})

    def test_as_dict_order(self, default_weights):
        """Test engines are listed in canonical order."""
        assert list(default_weights.as_dict()) == [e.value for e in Engine]


class TestStrategyDefinition:
    """Tests for StrategyDefinition parsing."""

    def test_from_dict(self, strategy_payload):
        """Test parsing a full payload."""
        definition = StrategyDefinition.from_dict(strategy_payload)

        assert definition.name == "Momentum"
        assert definition.target_assets == ("BTC", "ETH")
        assert len(definition.entry_rules) == 2
        assert definition.entry_rules[1].value == 0.1
        assert definition.exit_rules[0].operator == Operator.LT

    def test_to_dict_round_trip(self, strategy_payload):
        """Test serializing back yields an equal definition."""
        definition = StrategyDefinition.from_dict(strategy_payload)

        assert StrategyDefinition.from_dict(definition.to_dict()) == definition

    def test_invalid_rule_names_rule_set(self, strategy_payload):
        """Test parse errors name the rule set."""
        strategy_payload["exit_rules"] = [{"field": "final_score", "operator": "!=", "value": 0}]

        with pytest.raises(ValueError, match="exit_rules"):
            StrategyDefinition.from_dict(strategy_payload)

    def test_rules_must_be_list(self, strategy_payload):
        """Test a non-list rule set is rejected."""
        strategy_payload["entry_rules"] = {"field": "final_score"}

        with pytest.raises(ValueError, match="entry_rules must be a list"):
            StrategyDefinition.from_dict(strategy_payload)

    def test_target_assets_entries_must_be_strings(self, strategy_payload):
        """Test non-string symbols are rejected."""
        strategy_payload["target_assets"] = [1]

        with pytest.raises(ValueError, match="target_assets"):
            StrategyDefinition.from_dict(strategy_payload)

    def test_target_assets_must_be_list(self, strategy_payload):
        """Test a bare symbol string is not split into letters."""
        strategy_payload["target_assets"] = "btc"

        with pytest.raises(ValueError, match="target_assets"):
            StrategyDefinition.from_dict(strategy_payload)

    def test_null_name(self, strategy_payload):
        """Test a null name becomes empty."""
        strategy_payload["name"] = None

        assert StrategyDefinition.from_dict(strategy_payload).name == ""

    def test_not_an_object(self):
        """Test a non-mapping payload is rejected."""
        with pytest.raises(ValueError):
            StrategyDefinition.from_dict(["final_score"])

    def test_immutable(self, strategy_payload):
        """Test definitions cannot be changed after parsing."""
        definition = StrategyDefinition.from_dict(strategy_payload)

        with pytest.raises(AttributeError):
            definition.name = "Other"


class TestValidateDefinition:
    """Tests for validate_definition."""

    def test_valid(self, strategy_payload, mock_settings):
        """Test a valid payload has no errors."""
        definition = StrategyDefinition.from_dict(strategy_payload)

        assert validate_definition(definition, mock_settings) == []

    def test_weight_error_shows_total(self, strategy_payload, mock_settings):
        """Test the weight error reports the current total."""
        strategy_payload["engine_weights"]["liquidity"] = 0.3
        definition = StrategyDefinition.from_dict(strategy_payload)

        errors = validate_definition(definition, mock_settings)

        assert errors == ["Engine weights must sum to 1.0 (currently 1.20)"]


class TestDefaults:
    """Tests for default strategies and rule catalog."""

    def test_default_strategy(self, mock_settings):
        """Test the starting strategy."""
        definition = default_strategy(mock_settings)

        assert definition.engine_weights.total == pytest.approx(1.0)
        assert definition.entry_rules == (Rule("final_score", Operator.GT, 0.5),)
        assert definition.exit_rules == (Rule("final_score", Operator.LT, -0.3),)

    def test_new_rule(self, mock_settings):
        """Test rules appended by the author."""
        assert new_rule("entry", mock_settings) == Rule("final_score", Operator.GT, 0.3)
        assert new_rule("exit", mock_settings) == Rule("final_score", Operator.LT, -0.3)

    def test_new_rule_unknown_kind(self, mock_settings):
        """Test unknown rule kinds are rejected."""
        with pytest.raises(ValueError):
            new_rule("stop", mock_settings)

    def test_rule_fields_cover_engines(self):
        """Test every engine has a selectable field."""
        paths = {f.path for f in RULE_FIELDS}

        assert "final_score" in paths
        for engine in Engine:
            assert engine_score_path(engine) in paths

    def test_field_label(self):
        """Test labels for known and unknown paths."""
        assert field_label("metadata.engine_details.event_risk.score") == "Event Risk Score"
        assert field_label("foo.bar") == "foo.bar"
