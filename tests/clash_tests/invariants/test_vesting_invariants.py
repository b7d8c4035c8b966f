"""
Vesting Invariant Tests using Property-Based Testing

Random unlock curves, allocations and claim timelines are generated with
Hypothesis; the ledger invariants must hold for every one of them.
"""

import pytest
from hypothesis import given, settings, strategies as st

from clash.core.contracts.registry import ContractRegistry, deploy_clash_token
from clash.core.contracts.unlock_curve import UnlockCurve
from clash.core.vesting_exceptions import (
    AlreadyFullyReleasedError,
    NothingAllocatedError,
    VestingError,
)
from tests.clash_tests.helpers import DAY, PUBLISHER, TGE, USER, ManualClock

percent_values = st.integers(min_value=0, max_value=10_000)
time_offsets = st.integers(min_value=-30 * DAY, max_value=720 * DAY)

batches = st.lists(
    st.lists(st.tuples(percent_values, time_offsets), min_size=0, max_size=6),
    min_size=1,
    max_size=6,
)


@st.composite
def valid_curves(draw):
    """Non-decreasing unlock times from TGE with percentages summing to at most 10000."""
    count = draw(st.integers(min_value=1, max_value=8))
    gaps = draw(st.lists(st.integers(min_value=0, max_value=90 * DAY), min_size=count, max_size=count))
    times = []
    current = TGE
    for gap in gaps:
        current += gap
        times.append(current)
    remaining = 10_000
    percentages = []
    for _ in range(count):
        value = draw(st.integers(min_value=0, max_value=remaining))
        percentages.append(value)
        remaining -= value
    return percentages, times


def _schedule(allocation, percentages, times):
    clock = ManualClock(TGE)
    registry = ContractRegistry(time_provider=clock.now)
    token = deploy_clash_token(registry, PUBLISHER)
    schedule = registry.deploy_vesting_schedule(PUBLISHER, token.address, TGE, "Property")
    token.transfer(PUBLISHER, schedule.address, allocation)
    schedule.add_beneficiaries(PUBLISHER, [USER], [allocation])
    schedule.append_unlock_events(PUBLISHER, percentages, times)
    return schedule, clock


class TestUnlockCurveInvariants:
    @given(batches)
    @settings(max_examples=300)
    def test_percent_ceiling_and_append_atomicity(self, batch_list):
        """No accepted batch pushes the total past 10000; rejected batches change nothing."""
        curve = UnlockCurve(TGE)
        for batch in batch_list:
            before = curve.events
            try:
                curve.append([p for p, _ in batch], [TGE + offset for _, offset in batch])
            except VestingError:
                assert curve.events == before
            assert curve.total_percent <= 10_000
            assert curve.total_percent == sum(e.percent_x100 for e in curve.events)

    @given(batches)
    @settings(max_examples=200)
    def test_stored_times_are_non_decreasing(self, batch_list):
        curve = UnlockCurve(TGE)
        for batch in batch_list:
            try:
                curve.append([p for p, _ in batch], [TGE + offset for _, offset in batch])
            except VestingError:
                pass
        times = [e.unlock_time for e in curve.events]
        assert times == sorted(times)
        assert all(t >= TGE for t in times)

    @given(valid_curves(), st.lists(time_offsets, min_size=2, max_size=10))
    @settings(max_examples=200)
    def test_claimable_percent_is_monotonic(self, curve_data, offsets):
        percentages, times = curve_data
        curve = UnlockCurve(TGE)
        curve.append(percentages, times)

        values = [curve.claimable_percent(TGE + offset) for offset in sorted(offsets)]
        assert values == sorted(values)
        assert all(0 <= v <= 10_000 for v in values)


class TestReleaseInvariants:
    @given(
        st.integers(min_value=1, max_value=10**27),
        valid_curves(),
        st.lists(time_offsets, min_size=1, max_size=12),
    )
    @settings(max_examples=200, deadline=None)
    def test_release_is_monotonic_and_bounded_by_curve(self, allocation, curve_data, offsets):
        percentages, times = curve_data
        schedule, clock = _schedule(allocation, percentages, times)
        previous = 0

        for offset in sorted(offsets):
            clock.set(TGE + offset)
            try:
                schedule.claim_tokens(USER)
            except (NothingAllocatedError, AlreadyFullyReleasedError):
                pass
            released = schedule.released_amount(USER)
            assert released >= previous
            assert released <= allocation
            assert released <= allocation * schedule.claimable_percent() // 10_000
            previous = released

        assert schedule.token.balance_of(USER) == previous
        assert schedule.held_balance() == allocation - previous

    @given(st.integers(min_value=1, max_value=10**27), valid_curves())
    @settings(max_examples=100, deadline=None)
    def test_exhausted_beneficiary_stays_exhausted(self, allocation, curve_data):
        percentages, times = curve_data
        percentages[-1] += 10_000 - sum(percentages)
        schedule, clock = _schedule(allocation, percentages, times)

        clock.set(times[-1])
        schedule.claim_tokens(USER)
        assert schedule.released_amount(USER) == allocation

        for _ in range(3):
            clock.advance(DAY)
            with pytest.raises(AlreadyFullyReleasedError):
                schedule.claim_tokens(USER)
        assert schedule.released_amount(USER) == allocation
