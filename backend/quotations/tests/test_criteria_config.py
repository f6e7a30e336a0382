"""
Unit tests for loading, validating and syncing complexity criteria
configuration.
"""

import json
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from ..models import ComplexityCriterion
from ..services.criteria_config import (
    CriteriaConfigurationError,
    default_config_path,
    load_criteria_config,
    sync_criteria,
    validate_criteria_config,
)


def _valid_config():
    return {
        "version": "1.0",
        "criteria": [
            {
                "code": "heavy_cargo",
                "name": "Heavy cargo",
                "weight": 20,
                "rule": {"field": "cargo_weight_kg", "operator": ">", "value": 30000},
            },
            {
                "code": "difficult_terrain",
                "name": "Difficult terrain",
                "weight": 15,
                "rule": {"field": "terrain_type", "operator": "in", "value": ["mountain", "narrow"]},
            },
        ],
    }


class TestConfigurationLoading:
    """Test configuration loading functionality"""

    def test_load_valid_configuration(self):
        config = _valid_config()
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump(config, f)
            temp_path = f.name

        try:
            assert load_criteria_config(temp_path) == config
        finally:
            Path(temp_path).unlink()

    def test_load_invalid_json(self):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            f.write('{"criteria": [')
            temp_path = f.name

        try:
            with pytest.raises(CriteriaConfigurationError, match="Invalid JSON"):
                load_criteria_config(temp_path)
        finally:
            Path(temp_path).unlink()

    def test_load_missing_file(self):
        with pytest.raises(CriteriaConfigurationError, match="not found"):
            load_criteria_config("/path/that/does/not/exist.json")

    def test_load_with_permission_error(self):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            f.write("{}")
            temp_path = f.name

        try:
            with patch('builtins.open', side_effect=PermissionError("Access denied")):
                with pytest.raises(CriteriaConfigurationError, match="Error loading"):
                    load_criteria_config(temp_path)
        finally:
            Path(temp_path).unlink()

    def test_shipped_default_is_valid(self):
        config = load_criteria_config(default_config_path())
        assert validate_criteria_config(config) == []
        codes = [c["code"] for c in config["criteria"]]
        assert "heavy_cargo" in codes
        assert len(codes) == len(set(codes))


class TestConfigurationValidation:
    """Test validation of criteria definitions"""

    def test_valid(self):
        assert validate_criteria_config(_valid_config()) == []

    def test_missing_criteria_key(self):
        assert validate_criteria_config({"version": "1.0"}) == ["Missing required top-level key: criteria"]

    def test_duplicate_code(self):
        config = _valid_config()
        config["criteria"].append(dict(config["criteria"][0]))
        errors = validate_criteria_config(config)
        assert errors == ["Criterion heavy_cargo: duplicate code"]

    def test_missing_code_and_name(self):
        config = {"criteria": [{"weight": 5, "rule": {"field": "is_hazardous", "operator": "=", "value": True}}]}
        errors = validate_criteria_config(config)
        assert "Criterion #0: code is required" in errors
        assert "Criterion #0: name is required" in errors

    def test_negative_weight(self):
        config = _valid_config()
        config["criteria"][0]["weight"] = -5
        assert validate_criteria_config(config) == ["Criterion heavy_cargo: weight must be a non-negative integer"]

    def test_non_object_criterion(self):
        config = {"criteria": ["heavy_cargo"]}
        assert validate_criteria_config(config) == ["Criterion #0: must be an object"]

    def test_non_string_code_is_reported(self):
        config = _valid_config()
        config["criteria"][0]["code"] = ["heavy", "cargo"]
        assert validate_criteria_config(config) == ["Criterion #0: code must be a string"]

    @pytest.mark.parametrize("display_order", [-1, "first", 1.5, True])
    def test_bad_display_order(self, display_order):
        config = _valid_config()
        config["criteria"][0]["display_order"] = display_order
        assert validate_criteria_config(config) == [
            "Criterion heavy_cargo: display_order must be a non-negative integer"
        ]

    def test_bad_is_active(self):
        config = _valid_config()
        config["criteria"][0]["is_active"] = "yes"
        assert validate_criteria_config(config) == ["Criterion heavy_cargo: is_active must be true or false"]

    @pytest.mark.parametrize("rule,message", [
        ({"field": "cargo_weight_kg", "operator": "~", "value": 1}, "rule must have field"),
        ({"field": "cargo_colour", "operator": "=", "value": "red"}, "unknown field"),
        ({"field": "cargo_weight_kg", "operator": "=", "value": 1}, "needs a numeric comparison"),
        ({"field": "cargo_weight_kg", "operator": ">", "value": "heavy"}, "threshold must be a number"),
        ({"field": "is_hazardous", "operator": "=", "value": "yes"}, "compared with '='"),
        ({"field": "terrain_type", "operator": "=", "value": "mountain"}, "must use 'in'"),
        ({"field": "terrain_type", "operator": "in", "value": ["swamp"]}, "unknown terrain types"),
    ])
    def test_bad_rules(self, rule, message):
        config = {"criteria": [{"code": "x", "name": "X", "weight": 5, "rule": rule}]}
        errors = validate_criteria_config(config)
        assert len(errors) == 1
        assert message in errors[0]


@pytest.mark.django_db
class TestSync:
    """Test syncing configuration into the database"""

    def test_creates_then_updates(self):
        counts = sync_criteria(_valid_config())
        assert counts == {"created": 2, "updated": 0, "deactivated": 0}
        heavy = ComplexityCriterion.objects.get(code="heavy_cargo")
        assert heavy.weight == 20
        assert heavy.display_order == 0
        assert heavy.rule["operator"] == ">"

        config = _valid_config()
        config["criteria"][0]["weight"] = 25
        counts = sync_criteria(config)
        assert counts == {"created": 0, "updated": 2, "deactivated": 0}
        assert ComplexityCriterion.objects.get(code="heavy_cargo").weight == 25

    def test_deactivate_missing(self):
        ComplexityCriterion.objects.create(code="legacy", name="Legacy", weight=5,
                                           rule={"field": "is_hazardous", "operator": "=", "value": True})
        counts = sync_criteria(_valid_config(), deactivate_missing=True)
        assert counts["deactivated"] == 1
        assert ComplexityCriterion.objects.get(code="legacy").is_active is False

    def test_negative_display_order_is_not_synced(self):
        config = _valid_config()
        config["criteria"][0]["display_order"] = -3
        with pytest.raises(CriteriaConfigurationError, match="display_order"):
            sync_criteria(config)
        assert ComplexityCriterion.objects.count() == 0

    def test_null_display_order_uses_position(self):
        config = _valid_config()
        config["criteria"][1]["display_order"] = None
        sync_criteria(config)
        assert ComplexityCriterion.objects.get(code="difficult_terrain").display_order == 1

    def test_invalid_config_is_not_synced(self):
        config = _valid_config()
        config["criteria"][1]["rule"] = {"field": "terrain_type", "operator": "in", "value": ["swamp"]}
        with pytest.raises(CriteriaConfigurationError, match="unknown terrain types"):
            sync_criteria(config)
        assert ComplexityCriterion.objects.count() == 0

    def test_to_criterion(self):
        sync_criteria(_valid_config())
        criterion = ComplexityCriterion.objects.get(code="difficult_terrain").to_criterion()
        assert criterion.weight == 15
        assert criterion.is_active is True
        assert criterion.rule["value"] == ["mountain", "narrow"]
