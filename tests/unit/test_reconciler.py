"""Tests for the record reconciler."""

from datetime import date

import pytest

from racedesk.errors import IssueKind
from racedesk.reconcile.reconciler import merge_record, reconcile_race
from racedesk.records import FusedEntrant, RawRunnerRecord

RACE_DATE = date(2026, 2, 7)


def _reconcile(records, precedence, **kwargs):
    return reconcile_race(RACE_DATE, "Rosehill", 5, records, precedence, **kwargs)


def _by_tab(recon):
    return {e.tab_number: e for e in recon.entrants}


class TestFusion:
    def test_one_entrant_per_backbone_runner(self, rosehill_r5_records, precedence):
        recon = _reconcile(rosehill_r5_records, precedence)
        assert len(recon.entrants) == 4
        assert not recon.issues

    def test_spelling_variants_fused(self, rosehill_r5_records, precedence):
        """"Don't Tell Me" (tab 4) and "Dont Tell Me" (rating 118, $3.40) are one entrant."""
        entrant = _by_tab(_reconcile(rosehill_r5_records, precedence))[4]
        assert entrant.horse_name == "Don't Tell Me"
        assert entrant.model_rating == 118.0
        assert entrant.model_price == 3.40
        assert entrant.market_win_price == 3.6
        assert entrant.jockey == "N. Rawiller"

    def test_sources_in_precedence_order(self, rosehill_r5_records, precedence):
        entrant = _by_tab(_reconcile(rosehill_r5_records, precedence))[4]
        assert entrant.sources == ("puntingform", "rvo", "tab")

    def test_market_feed_with_track_alias(self, rosehill_r5_records, precedence):
        entrant = _by_tab(_reconcile(rosehill_r5_records, precedence))[1]
        assert entrant.market_win_price == 5.5
        assert entrant.market_place_price == 1.9

    def test_race_identity_from_call(self, rosehill_r5_records, precedence):
        recon = _reconcile(rosehill_r5_records, precedence)
        assert recon.key == (RACE_DATE, "rosehill", 5)
        assert all(e.race_date == RACE_DATE for e in recon.entrants)

    def test_deterministic(self, rosehill_r5_records, precedence):
        first = _reconcile(rosehill_r5_records, precedence)
        second = _reconcile(rosehill_r5_records, precedence)
        assert first.entrants == second.entrants
        assert first.issues == second.issues


class TestPrecedence:
    def test_higher_precedence_field_not_overwritten(self, rosehill_r5_records, precedence):
        records = rosehill_r5_records + [
            RawRunnerRecord("ttr", "Rosehill", 5, "Zaaki", rating=140.0, price=2.2),
        ]
        entrant = _by_tab(_reconcile(records, precedence))[2]
        assert entrant.model_rating == 130.0
        assert entrant.model_price == 2.5

    def test_lower_precedence_fills_empty_field(self, rosehill_r5_records, precedence):
        records = rosehill_r5_records + [
            RawRunnerRecord("ttr", "Rosehill", 5, "Sun Hat", jockey="K. McEvoy"),
        ]
        entrant = _by_tab(_reconcile(records, precedence))[3]
        assert entrant.jockey == "K. McEvoy"
        assert entrant.trainer == "C. Waller"

    def test_order_comes_from_configuration(self, rosehill_r5_records):
        records = rosehill_r5_records + [
            RawRunnerRecord("ttr", "Rosehill", 5, "Zaaki", rating=140.0, price=2.2),
        ]
        recon = _reconcile(records, ["puntingform", "ttr", "rvo", "tab"])
        assert _by_tab(recon)[2].model_rating == 140.0

    def test_record_order_does_not_matter(self, rosehill_r5_records, precedence):
        shuffled = list(reversed(rosehill_r5_records))
        assert _by_tab(_reconcile(shuffled, precedence)) == _by_tab(_reconcile(rosehill_r5_records, precedence))

    def test_non_positive_numbers_not_merged(self, rosehill_r5_records, precedence):
        records = [r for r in rosehill_r5_records if not (r.provider == "rvo" and r.horse_name == "Fast Lane")]
        records += [
            RawRunnerRecord("rvo", "Rosehill", 5, "Fast Lane", rating=95.0, price=0.0),
            RawRunnerRecord("ttr", "Rosehill", 5, "Fast Lane", price=4.0),
        ]
        entrant = _by_tab(_reconcile(records, precedence))[1]
        assert entrant.model_rating == 95.0
        assert entrant.model_price == 4.0

    def test_empty_precedence_rejected(self, rosehill_r5_records):
        with pytest.raises(ValueError):
            _reconcile(rosehill_r5_records, [])


class TestUnreconciled:
    def test_unmatched_secondary_is_reported_not_added(self, rosehill_r5_records, precedence):
        records = rosehill_r5_records + [RawRunnerRecord("rvo", "Rosehill", 5, "Ghost Runner", rating=90.0)]
        recon = _reconcile(records, precedence)
        assert len(recon.entrants) == 4
        unresolved = recon.issues_of(IssueKind.UNRESOLVED)
        assert len(unresolved) == 1
        assert unresolved[0].horse_name == "Ghost Runner"
        assert unresolved[0].provider == "rvo"

    def test_ambiguous_secondary_is_not_merged(self, precedence):
        records = [
            RawRunnerRecord("puntingform", "Rosehill", 5, "Star Gazer", tab_number=1),
            RawRunnerRecord("puntingform", "Rosehill", 5, "Lucky Star", tab_number=2),
            RawRunnerRecord("rvo", "Rosehill", 5, "Star", rating=100.0),
        ]
        recon = _reconcile(records, precedence)
        assert len(recon.issues_of(IssueKind.AMBIGUOUS)) == 1
        assert all(e.model_rating is None for e in recon.entrants)

    def test_one_provider_cannot_bind_twice(self, rosehill_r5_records, precedence):
        records = rosehill_r5_records + [RawRunnerRecord("rvo", "Rosehill", 5, "Fast Lane", rating=50.0)]
        recon = _reconcile(records, precedence)
        assert _by_tab(recon)[1].model_rating == 95.0
        assert len(recon.issues_of(IssueKind.UNRESOLVED)) == 1

    def test_no_backbone_means_no_entrants(self, precedence):
        records = [RawRunnerRecord("rvo", "Rosehill", 5, "Zaaki", rating=130.0, price=2.5)]
        recon = _reconcile(records, precedence)
        assert recon.entrants == ()
        assert len(recon.issues_of(IssueKind.UNRESOLVED)) == 1

    def test_unranked_provider(self, rosehill_r5_records, precedence):
        records = rosehill_r5_records + [RawRunnerRecord("mystery", "Rosehill", 5, "Zaaki", rating=1.0)]
        recon = _reconcile(records, precedence)
        issue = recon.issues_of(IssueKind.UNRESOLVED)[0]
        assert "not ranked" in issue.detail
        assert _by_tab(recon)[2].model_rating == 130.0


class TestScopeAndValidation:
    def test_other_races_ignored_silently(self, rosehill_r5_records, precedence):
        records = rosehill_r5_records + [
            RawRunnerRecord("puntingform", "Rosehill", 6, "Other Horse", tab_number=1),
            RawRunnerRecord("rvo", "Randwick", 5, "Zaaki", rating=1.0),
        ]
        recon = _reconcile(records, precedence)
        assert len(recon.entrants) == 4
        assert not recon.issues

    def test_missing_name_rejected(self, rosehill_r5_records, precedence):
        records = rosehill_r5_records + [RawRunnerRecord("rvo", "Rosehill", 5, "", rating=100.0)]
        recon = _reconcile(records, precedence)
        issues = recon.issues_of(IssueKind.MISSING_FIELD)
        assert len(issues) == 1
        assert len(recon.entrants) == 4

    def test_missing_race_number_rejected(self, rosehill_r5_records, precedence):
        records = rosehill_r5_records + [RawRunnerRecord("rvo", "Rosehill", None, "Zaaki", rating=1.0)]
        recon = _reconcile(records, precedence)
        assert len(recon.issues_of(IssueKind.MISSING_FIELD)) == 1
        assert _by_tab(recon)[2].model_rating == 130.0

    def test_backbone_duplicate_merged(self, precedence):
        records = [
            RawRunnerRecord("puntingform", "Rosehill", 5, "Fast Lane", tab_number=1),
            RawRunnerRecord("puntingform", "Rosehill", 5, "FAST LANE", jockey="J. McDonald"),
        ]
        recon = _reconcile(records, precedence)
        assert len(recon.entrants) == 1
        assert recon.entrants[0].jockey == "J. McDonald"


class TestMergeRecord:
    def test_fills_only_empty(self):
        entrant = FusedEntrant("Rosehill", 5, "Zaaki", tab_number=2, model_rating=130.0)
        merged = merge_record(entrant, RawRunnerRecord("ttr", "Rosehill", 5, "Zaaki", tab_number=9, rating=1.0, price=2.0))
        assert merged.tab_number == 2
        assert merged.model_rating == 130.0
        assert merged.model_price == 2.0
        assert merged.sources == ("ttr",)

    def test_input_untouched(self):
        entrant = FusedEntrant("Rosehill", 5, "Zaaki")
        merge_record(entrant, RawRunnerRecord("ttr", "Rosehill", 5, "Zaaki", rating=1.0))
        assert entrant.model_rating is None
