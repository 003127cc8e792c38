"""Tests for incremental PR detection through the lift log listener."""

import pytest

from conftest import at
from prledger.core.enums import ExerciseModality, PRType
from prledger.models.lift_log import LiftLog, LiftSet
from prledger.services.exercise_types import FreeWeightExerciseType, get_exercise_type
from prledger.services.lift_log_events import LedgerAction
from prledger.services.personal_records import verify_chains
from prledger.services.pr_detection import RecordBook


def of_type(records, pr_type, rep_count=None):
    return [r for r in records if r.pr_type == pr_type and (rep_count is None or r.rep_count == rep_count)]


class _FlakyEstimator(FreeWeightExerciseType):
    """Free weight whose estimator fails on one weight."""

    def estimate_one_rep_max(self, weight, reps, context=None):
        if weight == 13:
            raise RuntimeError("estimator offline")
        return super().estimate_one_rep_max(weight, reps, context)


@pytest.mark.unit
class TestRecordBook:
    def book(self, **kwargs) -> RecordBook:
        return RecordBook(get_exercise_type(ExerciseModality.FREE_WEIGHT), **kwargs)

    def entry(self, *sets) -> LiftLog:
        return LiftLog(sets=[LiftSet(set_order=i, weight=w, reps=r) for i, (w, r) in enumerate(sets)])

    def test_unusable_sets_are_skipped(self):
        book = self.book()
        scored = list(book.scored_sets(self.entry((0, 5), (100, 0), (100, 5))))
        assert len(scored) == 1
        assert scored[0][1] == pytest.approx(116.65)

    def test_failing_estimate_skips_only_that_set(self):
        book = RecordBook(_FlakyEstimator())
        records = book.record([self.entry((13, 5), (100, 3))])
        assert [r.rep_count for r in of_type(records, PRType.REP_SPECIFIC)] == [3]
        assert of_type(records, PRType.ONE_RM)[0].weight == 100
        assert book.best_volume == 300

    def test_absorb_tracks_bests(self):
        book = self.book()
        book.absorb(self.entry((100, 5), (120, 1)))
        book.absorb(self.entry((105, 5)))
        assert book.best_one_rm == pytest.approx(122.4825)
        assert book.best_weight_by_reps == {5: 105, 1: 120}
        assert book.best_volume == 620
        assert book.best_reps_by_weight == {100: 5, 120: 1, 105: 5}
        assert book.has_history

    def test_rep_specific_limited_to_ten_reps(self):
        records = self.book().record([self.entry((80, 12))])
        assert of_type(records, PRType.ONE_RM)
        assert of_type(records, PRType.REP_SPECIFIC) == []

    def test_rep_specific_limit_is_configurable(self):
        records = self.book(rep_specific_max_reps=5).record([self.entry((80, 8))])
        assert of_type(records, PRType.REP_SPECIFIC) == []

    def test_heavier_eight_rep_set_after_repeated_history(self):
        book = self.book()
        for _ in range(3):
            book.record([self.entry((150, 8))])
        records = book.record([self.entry((160, 8))])
        eights = of_type(records, PRType.REP_SPECIFIC, 8)
        assert len(eights) == 1
        assert (eights[0].weight, eights[0].previous_value) == (160, 150)

    def test_heaviest_set_wins_per_rep_count(self):
        records = self.book().record([self.entry((100, 3), (110, 3), (105, 3))])
        assert of_type(records, PRType.REP_SPECIFIC)[0].weight == 110

    def test_records_link_onto_previous(self):
        book = self.book()
        first = book.record([self.entry((100, 1))])
        second = book.record([self.entry((110, 1))])
        first_one_rm = of_type(first, PRType.ONE_RM)[0]
        second_one_rm = of_type(second, PRType.ONE_RM)[0]
        assert second_one_rm.previous_pr_id == first_one_rm.id
        assert second_one_rm.previous_value == 100

    @pytest.mark.parametrize("weight", [315, 60, 20, 299.8])
    def test_a_tenth_more_is_within_tolerance(self, weight):
        book = self.book()
        book.record([self.entry((weight, 1))])
        assert book.record([self.entry((weight + 0.1, 1))]) == []

    @pytest.mark.parametrize("weight", [315, 60])
    def test_a_tenth_more_sets_no_rep_specific_record(self, weight):
        book = self.book()
        book.record([self.entry((weight, 3))])
        assert of_type(book.record([self.entry((weight + 0.1, 3))]), PRType.REP_SPECIFIC) == []

    def test_volume_without_one_rm_or_rep_specific(self):
        book = self.book()
        book.record([self.entry((100, 5))])
        book.record([self.entry((85, 4))])
        records = book.record([self.entry((80, 4), (80, 4))])
        assert [r.pr_type for r in records] == [PRType.VOLUME]
        assert (records[0].value, records[0].previous_value) == (640, 500)
        assert records[0].weight is None

    def test_volume_with_varying_set_weights(self):
        book = self.book()
        book.record([self.entry((100, 5), (100, 5), (100, 5))])
        volume = of_type(book.record([self.entry((110, 5), (105, 5), (100, 5))]), PRType.VOLUME)
        assert [r.value for r in volume] == [1575]

    def test_volume_within_tolerance(self):
        book = self.book()
        book.record([self.entry((100, 5), (100, 5))])
        assert of_type(book.record([self.entry((100, 5), (100.01, 5))]), PRType.VOLUME) == []

    def test_high_reps_set_volume_only(self):
        book = self.book(rep_specific_max_reps=10)
        book.record([self.entry((100, 15))])
        records = book.record([self.entry((110, 15))])
        assert of_type(records, PRType.VOLUME)
        assert of_type(records, PRType.REP_SPECIFIC) == []

    def test_more_reps_at_a_logged_weight(self):
        book = self.book()
        book.record([self.entry((200, 8))])
        records = of_type(book.record([self.entry((200, 10), (200, 9))]), PRType.HYPERTROPHY)
        assert [(r.weight, r.value, r.previous_value) for r in records] == [(200, 10, None)]

    def test_first_time_weight_sets_no_hypertrophy_record(self):
        book = self.book()
        book.record([self.entry((200, 8))])
        assert of_type(book.record([self.entry((180, 12))]), PRType.HYPERTROPHY) == []

    def test_hypertrophy_chains_per_weight(self):
        book = self.book()
        book.record([self.entry((100, 10), (120, 6))])
        first = of_type(book.record([self.entry((100, 11), (120, 7))]), PRType.HYPERTROPHY)
        second = of_type(book.record([self.entry((100, 12))]), PRType.HYPERTROPHY)
        assert [r.weight for r in first] == [100, 120]
        assert second[0].previous_pr_id == first[0].id
        assert second[0].previous_value == 11
        assert book.latest[(PRType.HYPERTROPHY, None, 120.0)] is first[1]

    def test_bodyweight_sets_no_hypertrophy_record(self):
        book = RecordBook(get_exercise_type(ExerciseModality.BODYWEIGHT))
        book.record([self.entry((25, 8))])
        records = book.record([self.entry((25, 10))])
        assert of_type(records, PRType.HYPERTROPHY) == []
        assert of_type(records, PRType.VOLUME)


@pytest.mark.integration
class TestDetectAndRecord:
    @pytest.mark.asyncio
    async def test_first_entry_sets_one_record_per_chain(self, ledger):
        lift_log_id = await ledger.log(at(1), (100, 5), (90, 5))
        assert ledger.last_outcome.action == LedgerAction.DETECT

        records = await ledger.records()
        one_rms = of_type(records, PRType.ONE_RM)
        assert len(one_rms) == 1
        assert one_rms[0].previous_pr_id is None
        assert one_rms[0].previous_value is None
        assert one_rms[0].value == pytest.approx(116.65)
        assert one_rms[0].achieved_at == at(1)
        assert [r.rep_count for r in of_type(records, PRType.REP_SPECIFIC)] == [5]
        assert [r.value for r in of_type(records, PRType.VOLUME)] == [950]
        assert of_type(records, PRType.HYPERTROPHY) == []

        lift_log = await ledger.lift_log(lift_log_id)
        assert lift_log.is_pr
        assert lift_log.pr_count == 3

    @pytest.mark.asyncio
    async def test_improvement_within_tolerance_is_not_a_pr(self, ledger):
        await ledger.log(at(1), (100, 1))
        second = await ledger.log(at(2), (100.1, 1))
        assert ledger.last_outcome.records == []
        assert not (await ledger.lift_log(second)).is_pr

    @pytest.mark.asyncio
    async def test_improvement_beyond_tolerance_is_a_pr(self, make_ledger):
        squat = await make_ledger()
        await squat.log(at(1), (100, 1))
        await squat.log(at(2), (100.10001, 1))
        one_rms = of_type(await squat.records(), PRType.ONE_RM)
        assert len(one_rms) == 2
        assert one_rms[-1].value == pytest.approx(100.10001)
        assert one_rms[-1].previous_value == 100

    @pytest.mark.asyncio
    async def test_tolerance_compares_against_every_prior_entry(self, ledger):
        await ledger.log(at(1), (100, 1))
        await ledger.log(at(2), (100.1, 1))
        await ledger.log(at(3), (100.15, 1))
        assert ledger.last_outcome.records == []

    @pytest.mark.asyncio
    async def test_rep_specific_without_one_rm_improvement(self, ledger):
        await ledger.log(at(1), (200, 3))
        lift_log_id = await ledger.log(at(2), (185, 5))

        new = [r for r in await ledger.records() if r.lift_log_id == lift_log_id]
        assert of_type(new, PRType.ONE_RM) == []
        rep_specific = of_type(new, PRType.REP_SPECIFIC)
        assert len(rep_specific) == 1
        assert rep_specific[0].rep_count == 5
        assert rep_specific[0].weight == 185
        assert rep_specific[0].previous_pr_id is None

    @pytest.mark.asyncio
    async def test_a_tenth_over_a_heavy_single_is_not_a_pr(self, ledger):
        await ledger.log(at(1), (315, 1))
        second = await ledger.log(at(2), (315.1, 1))
        assert ledger.last_outcome.records == []
        assert not (await ledger.lift_log(second)).is_pr

    @pytest.mark.asyncio
    async def test_heavier_eight_rep_set_is_a_rep_specific_pr(self, ledger):
        for day in (1, 2, 3):
            await ledger.log(at(day), (150, 8))
        lift_log_id = await ledger.log(at(4), (160, 8))
        new = [r for r in await ledger.records() if r.lift_log_id == lift_log_id]
        assert [(r.rep_count, r.weight) for r in of_type(new, PRType.REP_SPECIFIC)] == [(8, 160)]

    @pytest.mark.asyncio
    async def test_hypertrophy_chain_per_weight(self, ledger):
        await ledger.log(at(1), (200, 8))
        await ledger.log(at(2), (200, 10))
        await ledger.log(at(3), (180, 12))
        await ledger.log(at(4), (200, 11))

        records = await ledger.records()
        verify_chains(records)
        hypertrophy = of_type(records, PRType.HYPERTROPHY)
        assert [(r.weight, r.value) for r in hypertrophy] == [(200, 10), (200, 11)]
        assert hypertrophy[1].previous_pr_id == hypertrophy[0].id

    @pytest.mark.asyncio
    async def test_chain_grows_in_time_order(self, ledger):
        for day, weight in enumerate((100, 105, 102.5, 110), start=1):
            await ledger.log(at(day), (weight, 5))

        records = await ledger.records()
        verify_chains(records)
        one_rms = of_type(records, PRType.ONE_RM)
        assert [r.weight for r in one_rms] == [100, 105, 110]
        assert one_rms[-1].previous_pr_id == one_rms[-2].id

    @pytest.mark.asyncio
    async def test_entry_with_only_unusable_sets(self, ledger):
        await ledger.log(at(1), (100, 5))
        lift_log_id = await ledger.log(at(2), (0, 10), (120, 0))
        assert ledger.last_outcome.records == []
        assert not (await ledger.lift_log(lift_log_id)).is_pr

    @pytest.mark.asyncio
    async def test_unsupported_modality_sets_nothing(self, make_ledger):
        plank = await make_ledger(ExerciseModality.TIMED_HOLD)
        lift_log_id = await plank.log(at(1), (10, 1))
        assert plank.last_outcome.action == LedgerAction.DETECT
        assert await plank.records() == []
        lift_log = await plank.lift_log(lift_log_id)
        assert (lift_log.is_pr, lift_log.pr_count) == (False, 0)

    @pytest.mark.asyncio
    async def test_bodyweight_uses_the_snapshot(self, make_ledger):
        dips = await make_ledger(ExerciseModality.BODYWEIGHT)
        await dips.log(at(1), (10, 5), bodyweight=80)
        one_rm = of_type(await dips.records(), PRType.ONE_RM)[0]
        assert one_rm.value == pytest.approx(90 * 1.1665)
        assert one_rm.weight == 10
