"""Unit tests for the penalty filter and the match service."""

import time

import pytest

from fifa_penalty.core.errors import MatchNotFoundError
from fifa_penalty.services import live_feed
from fifa_penalty.services.markets import simplify_event
from tests.fixtures.sample_feed import make_event, no_keyword_payload, started_event


class TestPenaltyFilter:
    def test_keyword_match_is_accent_insensitive(self):
        assert live_feed.is_penalty_event({"L": "Tirs au but FC25"})
        assert live_feed.is_penalty_event({"LE": "Pénaltis virtuales"})
        assert live_feed.is_penalty_event({"O1": "Shootout Kings"})
        assert not live_feed.is_penalty_event({"L": "FC 24 4x4"})

    def test_keyword_mode(self, payload):
        selection = live_feed.select_penalty_events(payload)

        assert selection.filter_mode == "keyword-penalty"
        assert selection.total_from_api == 8
        assert selection.total_sport == 7
        assert selection.total_penalty == 7
        assert all(ev["SI"] == 85 for ev in selection.events)

    def test_group_fallback_without_keywords(self):
        selection = live_feed.select_penalty_events(no_keyword_payload())

        assert selection.filter_mode == "group-fallback-gr-285"
        assert selection.total_penalty == 0
        assert [ev["I"] for ev in selection.events] == [5000, 5001]

    def test_empty_payload(self):
        selection = live_feed.select_penalty_events({})
        assert selection.events == []
        assert selection.total_from_api == 0


class TestIsUpcoming:
    def test_future_match(self):
        assert live_feed.is_upcoming(simplify_event(make_event(1, "A", "B", starts_in=300)))

    def test_past_start(self):
        assert not live_feed.is_upcoming(simplify_event(make_event(1, "A", "B", starts_in=-1)))

    def test_running_clock(self):
        match = simplify_event(make_event(1, "A", "B", starts_in=300, clock="12'"))
        assert not live_feed.is_upcoming(match)

    def test_in_play_status_text(self):
        match = simplify_event(make_event(1, "A", "B", starts_in=300, status="Mi-temps"))
        assert not live_feed.is_upcoming(match)

    def test_future_start_without_pre_match_signal(self):
        match = simplify_event(make_event(1, "A", "B", starts_in=300, status="", status_code=None))
        assert not live_feed.is_upcoming(match)

    def test_pre_match_by_status_code(self):
        match = simplify_event(make_event(1, "A", "B", starts_in=300, status="", status_code=128))
        assert live_feed.is_upcoming(match)

    @pytest.mark.parametrize("status, info", [
        ("Début dans 3 min", ""),
        ("", "Avant le début du match"),
    ])
    def test_pre_match_by_text(self, status, info):
        match = simplify_event(
            make_event(1, "A", "B", starts_in=300, status=status, info=info, status_code=None)
        )
        assert live_feed.is_upcoming(match)

    def test_in_play_marker_beats_pre_match_code(self):
        match = simplify_event(make_event(1, "A", "B", starts_in=300, info="Match terminé"))
        assert not live_feed.is_upcoming(match)

    def test_explicit_now(self):
        match = simplify_event(started_event())
        assert not live_feed.is_upcoming(match, now=time.time())


class TestMatchService:
    def test_get_penalty_matches(self, feed):
        result = live_feed.get_penalty_matches()

        assert result.filter_mode == "keyword-penalty"
        assert len(result.matches) == 7
        assert result.source.startswith("https://")

    def test_get_match_details(self, feed):
        details = live_feed.get_match_details("1000")

        assert details.match.team_home == "Home 0"
        assert len(details.betting_markets) == 7
        assert details.prediction.meta.teams == "Home 0 vs Away 0"

    def test_details_search_whole_feed(self, feed):
        details = live_feed.get_match_details("4000")
        assert details.match.sport_id == 1

    def test_unknown_match(self, feed):
        with pytest.raises(MatchNotFoundError):
            live_feed.get_match_details("nope")

    def test_explicit_payload_skips_fetch(self, feed, payload):
        live_feed.get_match_details("1000", payload=payload)
        assert feed == []

    def test_list_leagues(self, feed):
        assert live_feed.list_leagues() == ["FIFA Penalty - Champions", "FIFA Penalty - Liga Europea"]


class TestStructure:
    def test_schema_of(self):
        shape = live_feed.schema_of({"a": [1, 2], "b": {"c": "x"}, "d": None, "e": True}, 2)

        assert shape["type"] == "object"
        assert shape["keys"] == ["a", "b", "d", "e"]
        assert shape["props"]["a"] == {"type": "array", "length": 2, "sample": {"type": "number"}}
        assert shape["props"]["b"] == {"type": "object", "keys": ["c"], "props": {"c": {"type": "string"}}}
        assert shape["props"]["d"] == {"type": "null"}
        assert shape["props"]["e"] == {"type": "boolean"}

    def test_schema_depth_limit(self):
        shape = live_feed.schema_of({"x": {"y": 1}}, 1)
        assert shape["props"]["x"] == {"type": "object"}

    def test_get_structure(self, feed):
        result = live_feed.get_structure()

        assert result.top_level_keys == ["Success", "Error", "Value"]
        assert result.shapes["payload"]["props"]["Value"]["type"] == "array"
        assert result.shapes["firstMarketE"]["keys"] == ["G", "T", "C"]
        assert "scoreSC" in result.shapes
