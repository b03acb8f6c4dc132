"""Tests for the layered entity matcher."""

from racedesk.matching.matcher import Ambiguous, Matched, Unmatched, match_entrant
from racedesk.records import FusedEntrant, RawRunnerRecord, ScratchingRecord


# ── Helper factories ────────────────────────────────────────────────────────


def _make_entrant(horse_name, tab_number=None, race_number=5, track="Rosehill", runner_id=None):
    return FusedEntrant(
        track=track,
        race_number=race_number,
        horse_name=horse_name,
        tab_number=tab_number,
        runner_id=runner_id,
    )


def _make_record(horse_name, tab_number=None, race_number=5, track="Rosehill", runner_id=None):
    return RawRunnerRecord(
        provider="rvo",
        track=track,
        race_number=race_number,
        horse_name=horse_name,
        tab_number=tab_number,
        runner_id=runner_id,
    )


FIELD = [
    _make_entrant("Fast Lane", 1),
    _make_entrant("Zaaki (GB)", 2),
    _make_entrant("Sun-Hat", 3),
    _make_entrant("Don't Tell Me", 4),
]


class TestRuleOrder:
    def test_runner_id_wins_over_name(self):
        entrants = [_make_entrant("Fast Lane", 1, runner_id="R-77"), _make_entrant("Zaaki", 2)]
        result = match_entrant(_make_record("Something Else", runner_id="R-77"), entrants)
        assert isinstance(result, Matched)
        assert result.rule == "runner_id"
        assert result.entrant.horse_name == "Fast Lane"

    def test_tab_number(self):
        result = match_entrant(_make_record("FASTLANE", tab_number=1), FIELD)
        assert isinstance(result, Matched)
        assert result.rule == "tab_number"
        assert result.index == 0

    def test_canonical_name(self):
        result = match_entrant(_make_record("Dont Tell Me"), FIELD)
        assert isinstance(result, Matched)
        assert result.rule == "name"
        assert result.entrant.tab_number == 4

    def test_tab_miss_falls_through_to_name(self):
        result = match_entrant(_make_record("Sun Hat", tab_number=9), FIELD)
        assert isinstance(result, Matched)
        assert result.rule == "name"
        assert result.entrant.tab_number == 3

    def test_containment_last_resort(self):
        result = match_entrant(_make_record("Dont Tell"), FIELD)
        assert isinstance(result, Matched)
        assert result.rule == "containment"
        assert result.entrant.horse_name == "Don't Tell Me"

    def test_containment_needs_minimum_length(self):
        assert isinstance(match_entrant(_make_record("Sun"), FIELD), Unmatched)

    def test_containment_minimum_configurable(self):
        result = match_entrant(_make_record("Sun"), FIELD, min_containment=3)
        assert isinstance(result, Matched)
        assert result.entrant.tab_number == 3


class TestAmbiguity:
    def test_two_containment_hits_is_ambiguous(self):
        entrants = [_make_entrant("Star Gazer", 1), _make_entrant("Lucky Star", 2)]
        result = match_entrant(_make_record("Star"), entrants)
        assert isinstance(result, Ambiguous)
        assert result.rule == "containment"
        assert set(result.indexes) == {0, 1}

    def test_tie_on_early_rule_resolved_by_later_rule(self):
        entrants = [_make_entrant("Alpha", 3), _make_entrant("Beta", 3)]
        result = match_entrant(_make_record("Beta", tab_number=3), entrants)
        assert isinstance(result, Matched)
        assert result.rule == "name"
        assert result.index == 1

    def test_never_picks_first_of_several(self):
        entrants = [_make_entrant("Alpha", 3), _make_entrant("Alpha", 3)]
        result = match_entrant(_make_record("Alpha", tab_number=3), entrants)
        assert isinstance(result, Ambiguous)
        assert result.rule == "tab_number"


class TestScope:
    def test_other_race_never_matches(self):
        entrants = [_make_entrant("Fast Lane", 1, race_number=6)]
        assert isinstance(match_entrant(_make_record("Fast Lane", 1), entrants), Unmatched)

    def test_other_track_never_matches(self):
        entrants = [_make_entrant("Fast Lane", 1, track="Randwick")]
        assert isinstance(match_entrant(_make_record("Fast Lane", 1), entrants), Unmatched)

    def test_track_alias_in_scope(self):
        result = match_entrant(_make_record("Zaaki", track="Rosehill Gardens"), FIELD)
        assert isinstance(result, Matched)
        assert result.entrant.tab_number == 2

    def test_mixed_races_only_scope_considered(self):
        entrants = [_make_entrant("Fast Lane", 1, race_number=4), _make_entrant("Fast Lane", 7)]
        result = match_entrant(_make_record("Fast Lane"), entrants)
        assert isinstance(result, Matched)
        assert result.index == 1

    def test_empty_pool(self):
        assert isinstance(match_entrant(_make_record("Fast Lane"), []), Unmatched)

    def test_excluded_index_skipped(self):
        result = match_entrant(_make_record("Fast Lane"), FIELD, exclude={0})
        assert isinstance(result, Unmatched)


class TestScratchingCandidates:
    def test_tab_only_scratching(self):
        result = match_entrant(ScratchingRecord("Rosehill", 5, tab_number=2), FIELD)
        assert isinstance(result, Matched)
        assert result.entrant.horse_name == "Zaaki (GB)"
