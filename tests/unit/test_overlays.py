"""Tests for the scratching and result overlays."""

from datetime import date, datetime

from racedesk.errors import IssueKind
from racedesk.reconcile.overlays import apply_results, apply_scratchings
from racedesk.reconcile.reconciler import reconcile_race
from racedesk.records import FusedEntrant, ResultRecord, ScratchingRecord


def _entrants(records, precedence):
    return reconcile_race(date(2026, 2, 7), "Rosehill", 5, records, precedence).entrants


def _named(entrants, name):
    return next(e for e in entrants if e.horse_name == name)


class TestScratchings:
    def test_scratching_flags_entrant(self, rosehill_r5_records, precedence, dont_tell_me_scratching):
        entrants = _entrants(rosehill_r5_records, precedence)
        outcome = apply_scratchings(entrants, [dont_tell_me_scratching])

        entrant = _named(outcome.entrants, "Don't Tell Me")
        assert entrant.is_scratched
        assert entrant.scratch_reason == "Lame"
        assert entrant.scratch_time == datetime(2026, 2, 7, 11, 30)
        assert outcome.applied == 1
        assert not outcome.issues

    def test_scratched_entrant_kept(self, rosehill_r5_records, precedence, dont_tell_me_scratching):
        entrants = _entrants(rosehill_r5_records, precedence)
        outcome = apply_scratchings(entrants, [dont_tell_me_scratching])
        assert len(outcome.entrants) == len(entrants)
        assert _named(outcome.entrants, "Don't Tell Me").model_rating == 118.0

    def test_input_not_mutated(self, rosehill_r5_records, precedence, dont_tell_me_scratching):
        entrants = _entrants(rosehill_r5_records, precedence)
        apply_scratchings(entrants, [dont_tell_me_scratching])
        assert not any(e.is_scratched for e in entrants)

    def test_reapply_is_noop(self, rosehill_r5_records, precedence, dont_tell_me_scratching):
        entrants = _entrants(rosehill_r5_records, precedence)
        once = apply_scratchings(entrants, [dont_tell_me_scratching])
        twice = apply_scratchings(once.entrants, [dont_tell_me_scratching])
        assert twice.entrants == once.entrants
        assert twice.applied == 0
        assert twice.stale_overwrites == 0
        assert not twice.issues

    def test_second_reason_ignored_and_counted(self, rosehill_r5_records, precedence, dont_tell_me_scratching):
        entrants = _entrants(rosehill_r5_records, precedence)
        once = apply_scratchings(entrants, [dont_tell_me_scratching])
        later = ScratchingRecord("Rosehill", 5, horse_name="Dont Tell Me", reason="Trainer's decision")
        outcome = apply_scratchings(once.entrants, [later])
        assert _named(outcome.entrants, "Don't Tell Me").scratch_reason == "Lame"
        assert outcome.stale_overwrites == 1
        assert outcome.issues[0].kind == IssueKind.STALE_OVERWRITE

    def test_by_tab_number_only(self, rosehill_r5_records, precedence):
        entrants = _entrants(rosehill_r5_records, precedence)
        outcome = apply_scratchings(entrants, [ScratchingRecord("Rosehill", 5, tab_number=2, reason="Vet")])
        assert _named(outcome.entrants, "Zaaki (GB)").is_scratched

    def test_unmatched_scratching_reported(self, rosehill_r5_records, precedence):
        entrants = _entrants(rosehill_r5_records, precedence)
        outcome = apply_scratchings(entrants, [ScratchingRecord("Rosehill", 5, horse_name="Phantom", reason="Vet")])
        assert len(outcome.entrants) == 4
        assert not any(e.is_scratched for e in outcome.entrants)
        assert outcome.issues[0].kind == IssueKind.UNRESOLVED

    def test_scratching_without_identity(self, rosehill_r5_records, precedence):
        entrants = _entrants(rosehill_r5_records, precedence)
        outcome = apply_scratchings(entrants, [ScratchingRecord("Rosehill", 5, reason="Vet")])
        assert outcome.issues[0].kind == IssueKind.MISSING_FIELD


class TestResults:
    def test_results_attached(self, rosehill_r5_records, precedence, rosehill_r5_results):
        outcome = apply_results(_entrants(rosehill_r5_records, precedence), rosehill_r5_results)
        zaaki = _named(outcome.entrants, "Zaaki (GB)")
        assert zaaki.finishing_position == 1
        assert zaaki.starting_price == 2.8
        assert _named(outcome.entrants, "Sun-Hat").finishing_position == 3
        assert not _named(outcome.entrants, "Don't Tell Me").has_result
        assert outcome.applied == 3

    def test_first_result_wins(self, rosehill_r5_records, precedence, rosehill_r5_results):
        once = apply_results(_entrants(rosehill_r5_records, precedence), rosehill_r5_results)
        correction = ResultRecord("Rosehill", 5, "Zaaki", finishing_position=2, starting_price=3.0)
        outcome = apply_results(once.entrants, [correction])
        zaaki = _named(outcome.entrants, "Zaaki (GB)")
        assert zaaki.finishing_position == 1
        assert zaaki.starting_price == 2.8
        assert outcome.stale_overwrites == 1
        assert outcome.issues[0].kind == IssueKind.STALE_OVERWRITE

    def test_stable_ids_take_priority(self):
        entrants = (
            FusedEntrant("Rosehill", 5, "Fast Lane", tab_number=1, race_id="RH-5", runner_id="901"),
            FusedEntrant("Rosehill", 5, "Zaaki", tab_number=2, race_id="RH-5", runner_id="902"),
        )
        result = ResultRecord(
            "Rosehill", 5, "Renamed Horse", finishing_position=1, race_id="RH-5", runner_id="902"
        )
        outcome = apply_results(entrants, [result])
        assert outcome.entrants[1].finishing_position == 1
        assert not outcome.issues

    def test_unmatched_result_reported(self, rosehill_r5_records, precedence):
        outcome = apply_results(
            _entrants(rosehill_r5_records, precedence),
            [ResultRecord("Rosehill", 5, "Nobody Home", finishing_position=1)],
        )
        assert outcome.applied == 0
        assert outcome.issues[0].kind == IssueKind.UNRESOLVED
