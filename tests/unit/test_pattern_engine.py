"""Unit tests for the bet-history pattern engine."""

import pytest

from fifa_penalty.schemas.patterns import BetRecord
from fifa_penalty.services import pattern_engine as patterns


def record(**kwargs):
    base = {
        "date": "2025-01-10",
        "league": "FC25 5x5 Rush",
        "home": "Alpha",
        "away": "Beta",
        "score": "2-1",
        "option": "Handicap 1 (-1.5)",
        "odds": 2.0,
        "stake": 10,
        "issue": "win",
    }
    base.update(kwargs)
    return BetRecord(**base)


class TestFeatures:
    @pytest.mark.parametrize("league, family", [
        ("FC25 5x5 Rush", "FC25_5X5_RUSH"),
        ("FC 24 4x4", "FC24_4X4"),
        ("Ligue Européenne FC25", "FC25_EUROPEAN_LEAGUE"),
        ("Liga España", "FC25_SPAIN"),
        ("Angleterre FC25", "FC25_ENGLAND"),
        ("Random Cup", "OTHER"),
    ])
    def test_league_family(self, league, family):
        assert patterns.league_family(league) == family

    @pytest.mark.parametrize("option, expected", [
        ("Handicap 1 (-1.5)", ("handicap", "HOME", -1.5)),
        ("Total 2 - Plus de 1.5", ("team_total_over", "AWAY", 1.5)),
        ("Total Beta - Menos de 1.5", ("team_total_under", "AWAY", 1.5)),
        ("Más de 2.5 goles", ("total_over", "MATCH", 2.5)),
        ("Under 3.5", ("total_under", "MATCH", 3.5)),
        ("1 - Victoria Alpha", ("1x2", "HOME", None)),
        ("Double chance 1X", ("double_chance", "DC", None)),
    ])
    def test_classify_option(self, option, expected):
        assert patterns.classify_option(option, "Alpha", "Beta") == expected

    def test_issue_label(self):
        assert patterns.issue_label("Gagné") == 1
        assert patterns.issue_label("perdida") == 0
        assert patterns.issue_label("void") is None
        assert patterns.issue_label(None) is None

    def test_to_features(self):
        f = patterns.to_features(record(issue="remboursé"))

        assert (f.home_goals, f.away_goals, f.total_goals) == (2, 1, 3)
        assert f.option_type == "handicap"
        assert f.line_value == -1.5
        assert f.label is None
        assert f.void == 1

    def test_explicit_line_wins(self):
        assert patterns.to_features(record(line_value=-2.0)).line_value == -2.0


class TestStatistics:
    def test_wilson_interval(self):
        low, high = patterns.wilson95(5, 10)
        assert low == pytest.approx(0.2366, abs=1e-3)
        assert high == pytest.approx(0.7634, abs=1e-3)
        assert patterns.wilson95(0, 0) == (0.0, 0.0)

    def test_roi(self):
        rows = [
            patterns.to_features(record()),
            patterns.to_features(record(issue="loss", date="2025-01-11")),
            patterns.to_features(record(stake=None, date="2025-01-12")),
        ]
        stake_sum, profit, roi = patterns.compute_roi(rows)

        assert (stake_sum, profit, roi) == (20, 0, 0)

    def test_deduplicate_by_stable_hash(self):
        rows = [patterns.to_features(record()), patterns.to_features(record(id="other-id"))]

        assert patterns.stable_hash(rows[0]) == patterns.stable_hash(rows[1])
        assert len(patterns.deduplicate(rows)) == 1

    def test_odds_bucket(self):
        assert patterns.odds_bucket(1.5) == "odds_1.xx"
        assert patterns.odds_bucket(2.1) == "odds_2.00-2.19"
        assert patterns.odds_bucket(2.5) == "odds_2.20-2.99"
        assert patterns.odds_bucket(3.2) == "odds_3.00+"
        assert patterns.odds_bucket(None) == "odds_unknown"


class TestDecisionEngine:
    def test_report(self):
        records = [record(), record(issue="loss", date="2025-01-11"), record()]
        report = patterns.DecisionEngine(records, min_rule_played=2).report()

        assert report["meta"]["totalRecords"] == 3
        assert report["meta"]["totalRecordsDedup"] == 2
        assert report["meta"]["totalValidated"] == 2
        assert report["meta"]["winrate"] == 0.5
        assert report["byLeague"]["FC25_5X5_RUSH"]["played"] == 2
        assert report["byOption"]["handicap"]["wins"] == 1
        rules = {r["rule"] for r in report["rules"]}
        assert {"league=FC25_5X5_RUSH", "option=handicap", "FC25_5X5 + handicap"} <= rules

    def test_locked_until_enough_matches(self):
        engine = patterns.DecisionEngine([record()], total_validated=10)
        decision = engine.decide(record())

        assert decision.status == "FILTER_LOCKED"
        assert decision.playable is False
        assert "10/50" in decision.message

    def test_safe_candidate(self):
        engine = patterns.DecisionEngine([], total_validated=60)
        decision = engine.decide(record(odds=2.5))

        assert decision.status == "OK"
        assert decision.tier == "SAFE"
        assert decision.score == 100
        assert decision.playable

    def test_moderate_candidate(self):
        engine = patterns.DecisionEngine([], total_validated=60)
        decision = engine.decide(record(league="Random", option="Total 2 - Plus de 1.5", odds=2.5))

        assert decision.score == 82
        assert decision.tier == "MODERATE"

    def test_no_play_candidate(self):
        engine = patterns.DecisionEngine([], total_validated=60)
        decision = engine.decide(record(league="Champions FC25", option="Double chance 1X", odds=1.3))

        assert decision.score == 25
        assert decision.tier == "NO_PLAY"
        assert not decision.playable

    def test_train_csv(self):
        engine = patterns.DecisionEngine([record()])
        lines = patterns.to_train_csv(engine.rows).splitlines()

        assert lines[0].startswith("id,date,league_family,home,away")
        assert len(lines) == 2
        assert ",FC25_5X5_RUSH,Alpha,Beta,2,1,3,handicap,-1.5,HOME,2.0,10.0,1,0" in lines[1]
