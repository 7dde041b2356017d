"""
Unit tests for enums, validators and calculation helpers
"""
import json
import logging
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from app.core.dates import month_start, previous_month_start, quarter_start, week_start, as_utc
from app.core.logging import AuditLogger
from app.core.validators import validate_phone, validate_decimal_string, validate_state_code, sanitize_input
from app.models import Classification, CompletionType, FollowupStatus, City, compare_classification
from app.schemas.city import CityUpdate
from app.services.metrics import goal_percentage, growth_percentage
from app.services.patient_lifecycle import followup_for
from app.services.repository import apply_updates


class TestClassification:
    def test_tiers_are_ordered(self):
        assert Classification.BRONZE < Classification.SILVER < Classification.GOLD < Classification.DIAMOND
        assert sorted([Classification.GOLD, Classification.BRONZE, Classification.DIAMOND]) == [
            Classification.BRONZE, Classification.GOLD, Classification.DIAMOND,
        ]

    def test_order_is_not_alphabetical(self):
        # "diamond" < "gold" alphabetically
        assert Classification.DIAMOND > Classification.GOLD

    def test_compare_classification(self):
        assert compare_classification("gold", "silver") == 1
        assert compare_classification(Classification.BRONZE, "diamond") == -1
        assert compare_classification("gold", Classification.GOLD) == 0
        assert compare_classification(None, "bronze") == -1


class TestOutcomeSpellings:
    def test_legacy_spelling_maps_to_procedure_closed(self):
        assert FollowupStatus.normalize("closed_procedure") is FollowupStatus.PROCEDURE_CLOSED
        assert CompletionType.normalize("closed_procedure") is CompletionType.PROCEDURE_CLOSED

    def test_other_values_pass_through(self):
        assert FollowupStatus.normalize("missed") is FollowupStatus.MISSED
        assert FollowupStatus.normalize(None) is None

    def test_unknown_value_is_rejected(self):
        with pytest.raises(ValueError):
            CompletionType.normalize("maybe")

    def test_followup_for_completion(self):
        assert followup_for(CompletionType.PROCEDURE_CLOSED) is FollowupStatus.PROCEDURE_CLOSED
        assert followup_for(CompletionType.NO_CLOSURE) is FollowupStatus.NO_CLOSURE


class TestGoalMath:
    @pytest.mark.parametrize("actual, goal, expected", [
        (500, 1000, 50.0),
        (1500, 1000, 150.0),
        (1500, 0, 0.0),
        (1500, None, 0.0),
        (0, 1000, 0.0),
        (1, 3, 33.33),
    ])
    def test_goal_percentage(self, actual, goal, expected):
        assert goal_percentage(actual, goal) == expected

    def test_goal_percentage_accepts_decimal_strings(self):
        assert goal_percentage(250, "1000.00") == 25.0

    def test_growth(self):
        assert growth_percentage(150, 100) == 50.0
        assert growth_percentage(50, 100) == -50.0
        assert growth_percentage(100, 0) == 0.0


class TestCalendarWindows:
    now = datetime(2026, 8, 20, 15, 30, tzinfo=timezone.utc)  # a Thursday

    def test_month(self):
        assert month_start(self.now) == datetime(2026, 8, 1, tzinfo=timezone.utc)
        assert previous_month_start(self.now) == datetime(2026, 7, 1, tzinfo=timezone.utc)
        assert previous_month_start(datetime(2026, 1, 10, tzinfo=timezone.utc)) == datetime(2025, 12, 1, tzinfo=timezone.utc)

    def test_quarter(self):
        assert quarter_start(self.now) == datetime(2026, 7, 1, tzinfo=timezone.utc)

    def test_iso_week_starts_monday(self):
        assert week_start(self.now) == datetime(2026, 8, 17, tzinfo=timezone.utc)

    def test_naive_values_are_read_as_utc(self):
        assert as_utc(datetime(2026, 8, 20, 12)) == datetime(2026, 8, 20, 12, tzinfo=timezone.utc)
        assert as_utc(None) is None


class TestValidators:
    def test_phone_is_normalized_to_e164(self):
        assert validate_phone("(81) 99876-5432") == "+5581998765432"

    def test_invalid_phone(self):
        with pytest.raises(ValueError):
            validate_phone("123")

    def test_decimal_strings(self):
        assert validate_decimal_string("1000") == "1000.00"
        assert validate_decimal_string(2500.5) == "2500.50"
        assert validate_decimal_string("") is None
        with pytest.raises(ValueError):
            validate_decimal_string("-1")
        with pytest.raises(ValueError):
            validate_decimal_string("abc")

    def test_state_code(self):
        assert validate_state_code(" pe ") == "PE"
        with pytest.raises(ValueError):
            validate_state_code("P1")

    def test_sanitize_input(self):
        assert sanitize_input("  <b>Ana</b>   Souza ") == "bAna/b Souza"


class TestPartialUpdates:
    def test_only_sent_fields_are_applied(self):
        city = City(name="Recife", state="PE", description="Capital")

        changes = apply_updates(city, CityUpdate(monthly_goal="5000"))

        assert changes == {"monthly_goal": "5000.00"}
        assert city.description == "Capital"
        assert city.monthly_goal == "5000.00"

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            CityUpdate(id="hijack")

    def test_null_is_rejected_for_required_columns(self):
        with pytest.raises(ValidationError):
            CityUpdate(name=None)

        assert CityUpdate(description=None).model_dump(exclude_unset=True) == {"description": None}


class TestAuditLog:
    def test_events_are_json_lines_at_their_level(self, caplog):
        audit = AuditLogger("audit.test")

        with caplog.at_level(logging.DEBUG, logger="audit.test"):
            audit.patient_status_change("u1", "p1", "active", "inactive", "Mudou de cidade")
            audit._emit("cache_warmed", "DEBUG", entries=3)

        status_change, debug = caplog.records
        assert status_change.levelno == logging.WARNING
        assert json.loads(status_change.getMessage())["reason"] == "Mudou de cidade"
        assert debug.levelno == logging.DEBUG
        assert json.loads(debug.getMessage())["entries"] == 3
