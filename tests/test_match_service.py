"""
tests/test_match_service.py — Match Recording & Correction
===========================================================

Every match write is one unit of work: the match record and one ledger
entry per player land together or not at all.
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from conftest import ORG, OTHER_ORG, make_definition
from rosterrank.database.models import MatchRecord, RankStatEntry, StatEntryKind, Winner
from rosterrank.errors import (
    ConfigurationError,
    ConflictError,
    DuplicateSubmissionError,
    NotFoundError,
    ScoreValidationError,
)
from rosterrank.services.leaderboard_service import get_leaderboard, get_member_rank
from rosterrank.services.match_service import (
    correct_match,
    list_matches_by_definition,
    list_matches_by_session,
    record_match,
)


def _football(engine, definition_id, scores=None, **kwargs):
    return record_match(
        engine,
        definition_id=definition_id,
        organization_id=kwargs.pop("organization_id", ORG),
        team1=kwargs.pop("team1", ["a1", "a2", "a3", "a4", "a5"]),
        team2=kwargs.pop("team2", ["b1", "b2", "b3", "b4", "b5"]),
        scores=scores if scores is not None else {"team1": 3, "team2": 1},
        recorded_by="admin-1",
        **kwargs,
    )


def _stats(engine, definition_id, user_id):
    return get_member_rank(engine, definition_id, ORG, user_id)["stats"]


def _count(engine, model):
    with Session(engine) as session:
        return session.scalar(select(func.count()).select_from(model))


# ---------------------------------------------------------------------------
# record_match
# ---------------------------------------------------------------------------
class TestRecordMatch:
    def test_goal_match_updates_both_teams(self, db_engine, football_def):
        result = _football(db_engine, football_def, session_id="s1")
        match = result["match"]
        assert match["winner"] == Winner.TEAM1
        assert match["match_format"] == "5v5"
        assert match["session_id"] == "s1"
        assert len(result["entries"]) == 10
        assert all(entry["match_id"] == match["id"] for entry in result["entries"])

        assert _stats(db_engine, football_def, "a1") == {
            "matches_played": 1, "wins": 1, "draws": 0, "losses": 0,
            "goals_scored": 3, "goals_conceded": 1,
        }
        assert _stats(db_engine, football_def, "b5")["losses"] == 1
        assert _stats(db_engine, football_def, "b5")["goals_scored"] == 1

    def test_derived_stats_snapshot_is_stored(self, db_engine, tennis_def):
        result = record_match(
            db_engine, definition_id=tennis_def, organization_id=ORG,
            team1=["p1"], team2=["p2"], scores=[[6, 4], [3, 6], [7, 5]], recorded_by="admin-1",
        )
        snapshot = result["match"]["derived_stats"]
        assert snapshot["p1"]["sets_won"] == 2
        assert snapshot["p2"]["sets_won"] == 1
        assert result["match"]["scores"] == [[6, 4], [3, 6], [7, 5]]

    def test_explicit_format(self, db_engine, tennis_def):
        result = record_match(
            db_engine, definition_id=tennis_def, organization_id=ORG,
            team1=["p1", "p2"], team2=["p3", "p4"], scores=[[6, 4], [6, 4]],
            recorded_by="admin-1", match_format="doubles",
        )
        assert result["match"]["match_format"] == "doubles"

    def test_invalid_score_writes_nothing(self, db_engine, tennis_def):
        with pytest.raises(ScoreValidationError):
            record_match(
                db_engine, definition_id=tennis_def, organization_id=ORG,
                team1=["p1"], team2=["p2"], scores=[[6, 2], [7, 7]], recorded_by="admin-1",
            )
        assert _count(db_engine, MatchRecord) == 0
        assert _count(db_engine, RankStatEntry) == 0

    def test_oversized_total_is_a_validation_error(self, db_engine, football_def):
        with pytest.raises(ScoreValidationError, match="exceed"):
            _football(db_engine, football_def, scores={"team1": 10**30, "team2": 0})
        assert _count(db_engine, MatchRecord) == 0
        assert _count(db_engine, RankStatEntry) == 0

    def test_bad_team_size_is_configuration_error(self, db_engine, football_def):
        with pytest.raises(ConfigurationError):
            _football(db_engine, football_def, team1=["a1"])

    def test_stats_only_domain_cannot_record_matches(self, db_engine, reading_def):
        with pytest.raises(ConfigurationError):
            record_match(
                db_engine, definition_id=reading_def, organization_id=ORG,
                team1=["a"], team2=["b"], scores={"team1": 1, "team2": 0}, recorded_by="x",
            )

    def test_duplicate_session_aborts_whole_match(self, db_engine, football_def):
        _football(db_engine, football_def, session_id="s1")
        with pytest.raises(DuplicateSubmissionError):
            _football(
                db_engine, football_def, session_id="s1",
                team1=["c1", "c2", "c3", "c4", "a1"],
                scores={"team1": 0, "team2": 4},
            )
        assert _count(db_engine, MatchRecord) == 1
        assert _count(db_engine, RankStatEntry) == 10
        assert _stats(db_engine, football_def, "a1")["wins"] == 1
        with pytest.raises(NotFoundError):
            get_member_rank(db_engine, football_def, ORG, "c1")

    def test_same_players_in_another_session(self, db_engine, football_def):
        _football(db_engine, football_def, session_id="s1")
        _football(db_engine, football_def, session_id="s2", scores={"team1": 2, "team2": 2})
        stats = _stats(db_engine, football_def, "a1")
        assert stats["matches_played"] == 2
        assert stats["draws"] == 1
        assert stats["goals_scored"] == 5

    def test_foreign_organization_is_not_found(self, db_engine, football_def):
        with pytest.raises(NotFoundError):
            _football(db_engine, football_def, organization_id=OTHER_ORG)

    def test_unknown_definition_is_not_found(self, db_engine):
        with pytest.raises(NotFoundError):
            _football(db_engine, 9999)

    def test_players_are_applied_in_user_id_order(self, db_engine, football_def):
        result = _football(
            db_engine, football_def,
            team1=["z1", "m1", "c1", "x1", "a1"], team2=["y2", "b2", "n2", "d2", "k2"],
        )
        user_ids = [entry["user_id"] for entry in result["entries"]]
        assert user_ids == sorted(user_ids)


# ---------------------------------------------------------------------------
# correct_match
# ---------------------------------------------------------------------------
class TestCorrectMatch:
    def test_correction_swaps_the_result(self, db_engine, football_def):
        original = _football(db_engine, football_def, session_id="s1")["match"]
        result = correct_match(
            db_engine, definition_id=football_def, organization_id=ORG,
            match_id=original["id"], scores={"team1": 1, "team2": 2}, recorded_by="admin-2",
            notes="Scores were swapped",
        )
        assert result["corrected_match_id"] == original["id"]
        assert result["match"]["correction_of_match_id"] == original["id"]
        assert result["match"]["winner"] == Winner.TEAM2
        assert result["match"]["session_id"] == "s1"
        assert len(result["reversals"]) == 10
        assert len(result["corrections"]) == 10
        assert all(e["kind"] == StatEntryKind.REVERSAL for e in result["reversals"])
        assert all(e["kind"] == StatEntryKind.CORRECTION for e in result["corrections"])

        assert _stats(db_engine, football_def, "a1") == {
            "matches_played": 1, "wins": 0, "draws": 0, "losses": 1,
            "goals_scored": 1, "goals_conceded": 2,
        }
        assert _stats(db_engine, football_def, "b1")["wins"] == 1

    def test_correction_applies_players_in_user_id_order(self, db_engine, football_def):
        original = _football(
            db_engine, football_def,
            team1=["z1", "m1", "c1", "x1", "a1"], team2=["y2", "b2", "n2", "d2", "k2"],
        )["match"]
        result = correct_match(
            db_engine, definition_id=football_def, organization_id=ORG,
            match_id=original["id"], scores={"team1": 0, "team2": 1}, recorded_by="admin-1",
        )
        for key in ("reversals", "corrections"):
            user_ids = [entry["user_id"] for entry in result[key]]
            assert user_ids == sorted(user_ids)

    def test_originals_are_retained(self, db_engine, football_def):
        original = _football(db_engine, football_def)["match"]
        correct_match(
            db_engine, definition_id=football_def, organization_id=ORG,
            match_id=original["id"], scores={"team1": 0, "team2": 0}, recorded_by="admin-1",
        )
        assert _count(db_engine, MatchRecord) == 2
        assert _count(db_engine, RankStatEntry) == 30

    def test_correction_can_change_teams(self, db_engine, tennis_def):
        original = record_match(
            db_engine, definition_id=tennis_def, organization_id=ORG,
            team1=["p1"], team2=["p2"], scores=[[6, 4], [6, 4]], recorded_by="admin-1",
        )["match"]
        correct_match(
            db_engine, definition_id=tennis_def, organization_id=ORG,
            match_id=original["id"], team2=["p3"], scores=[[6, 4], [6, 4]],
            recorded_by="admin-1",
        )
        assert _stats(db_engine, tennis_def, "p1")["wins"] == 1
        assert _stats(db_engine, tennis_def, "p2")["matches_played"] == 0
        assert _stats(db_engine, tennis_def, "p3")["losses"] == 1

    def test_second_correction_of_same_match_conflicts(self, db_engine, football_def):
        original = _football(db_engine, football_def)["match"]
        kwargs = dict(
            definition_id=football_def, organization_id=ORG, match_id=original["id"],
            scores={"team1": 0, "team2": 1}, recorded_by="admin-1",
        )
        correct_match(db_engine, **kwargs)
        with pytest.raises(ConflictError):
            correct_match(db_engine, **kwargs)
        assert _stats(db_engine, football_def, "a1")["losses"] == 1
        assert _stats(db_engine, football_def, "a1")["matches_played"] == 1

    def test_correction_chain(self, db_engine, football_def):
        original = _football(db_engine, football_def)["match"]
        first = correct_match(
            db_engine, definition_id=football_def, organization_id=ORG,
            match_id=original["id"], scores={"team1": 0, "team2": 1}, recorded_by="admin-1",
        )
        correct_match(
            db_engine, definition_id=football_def, organization_id=ORG,
            match_id=first["match"]["id"], scores={"team1": 2, "team2": 2},
            recorded_by="admin-1",
        )
        assert _stats(db_engine, football_def, "a1") == {
            "matches_played": 1, "wins": 0, "draws": 1, "losses": 0,
            "goals_scored": 2, "goals_conceded": 2,
        }

    def test_invalid_corrected_score_changes_nothing(self, db_engine, tennis_def):
        original = record_match(
            db_engine, definition_id=tennis_def, organization_id=ORG,
            team1=["p1"], team2=["p2"], scores=[[6, 4], [6, 4]], recorded_by="admin-1",
        )["match"]
        with pytest.raises(ScoreValidationError):
            correct_match(
                db_engine, definition_id=tennis_def, organization_id=ORG,
                match_id=original["id"], scores=[[6, 6]], recorded_by="admin-1",
            )
        assert _count(db_engine, MatchRecord) == 1
        assert _stats(db_engine, tennis_def, "p1")["wins"] == 1

    def test_match_of_another_definition_is_not_found(self, db_engine, football_def):
        other = make_definition(db_engine, "football", activity_id="act-other")
        original = _football(db_engine, other)["match"]
        with pytest.raises(NotFoundError):
            correct_match(
                db_engine, definition_id=football_def, organization_id=ORG,
                match_id=original["id"], scores={"team1": 0, "team2": 1}, recorded_by="x",
            )

    def test_leaderboard_reflects_correction(self, db_engine, tennis_def):
        original = record_match(
            db_engine, definition_id=tennis_def, organization_id=ORG,
            team1=["p1"], team2=["p2"], scores=[[6, 4], [6, 4]], recorded_by="admin-1",
        )["match"]
        assert [r["user_id"] for r in get_leaderboard(db_engine, tennis_def, ORG)] == ["p1", "p2"]
        correct_match(
            db_engine, definition_id=tennis_def, organization_id=ORG,
            match_id=original["id"], scores=[[4, 6], [4, 6]], recorded_by="admin-1",
        )
        assert [r["user_id"] for r in get_leaderboard(db_engine, tennis_def, ORG)] == ["p2", "p1"]


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------
class TestListings:
    def test_by_session_flags_superseded(self, db_engine, football_def):
        original = _football(db_engine, football_def, session_id="s1")["match"]
        corrected = correct_match(
            db_engine, definition_id=football_def, organization_id=ORG,
            match_id=original["id"], scores={"team1": 1, "team2": 1}, recorded_by="admin-1",
        )["match"]
        _football(
            db_engine, football_def, session_id="s2",
            team1=["c1", "c2", "c3", "c4", "c5"], team2=["d1", "d2", "d3", "d4", "d5"],
        )

        rows = list_matches_by_session(db_engine, football_def, ORG, "s1")
        by_id = {row["id"]: row for row in rows}
        assert set(by_id) == {original["id"], corrected["id"]}
        assert by_id[original["id"]]["superseded"] is True
        assert by_id[corrected["id"]]["superseded"] is False

    def test_by_definition_newest_first_with_paging(self, db_engine, football_def):
        ids = [
            _football(db_engine, football_def, session_id=f"s{i}")["match"]["id"]
            for i in range(3)
        ]
        page = list_matches_by_definition(db_engine, football_def, ORG, limit=2)
        assert [row["id"] for row in page] == [ids[2], ids[1]]
        rest = list_matches_by_definition(db_engine, football_def, ORG, limit=2, offset=2)
        assert [row["id"] for row in rest] == [ids[0]]

    def test_bad_paging_rejected(self, db_engine, football_def):
        with pytest.raises(ValueError):
            list_matches_by_definition(db_engine, football_def, ORG, limit=0)

    def test_foreign_organization_is_not_found(self, db_engine, football_def):
        with pytest.raises(NotFoundError):
            list_matches_by_session(db_engine, football_def, OTHER_ORG, "s1")
