from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable  # noqa: TC003

from tests.helpers.world import FakeRecordStore, make_record
from worldtidy.domain.jobs import JobQueue, Lane
from worldtidy.domain.ports import RecordStoreError, TooManyRequestsError
from worldtidy.domain.reconciliation import (
    MAX_DESCRIPTION_LENGTH,
    ClaimMode,
    ClaimReconciler,
    ReconcileAction,
    ReconciliationResult,
)
from worldtidy.domain.values import EntityRef, Quantity


def _run(
    store: FakeRecordStore,
    scenario: Callable[[ClaimReconciler], Awaitable[object]],
) -> tuple[object, list[float]]:
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    async def main() -> object:
        reconciler = ClaimReconciler(store, JobQueue(Lane.SERIAL, 1), sleep=fake_sleep)
        return await scenario(reconciler)

    return asyncio.run(main()), sleeps


def _ensure(*args: object, **kwargs: object) -> Callable[[ClaimReconciler], Awaitable[object]]:
    async def scenario(reconciler: ClaimReconciler) -> ReconciliationResult | None:
        return await reconciler.ensure(*args, **kwargs).wait()  # type: ignore[arg-type]

    return scenario


def test_matching_single_claim_is_a_noop() -> None:
    store = FakeRecordStore()
    store.add(make_record("Q100", {"P57": ["1.39.3"]}))

    result, _ = _run(store, _ensure("Q100", "P57", "1.39.3"))

    assert isinstance(result, ReconciliationResult)
    assert result.action is ReconcileAction.NOOP
    assert store.writes() == []


def test_reconciling_twice_writes_once() -> None:
    store = FakeRecordStore()
    store.add(make_record("Q100"))

    async def twice(reconciler: ClaimReconciler) -> list[ReconcileAction]:
        first = await reconciler.ensure("Q100", "P57", "1.41.0").wait()
        second = await reconciler.ensure("Q100", "P57", "1.41.0").wait()
        assert first is not None
        assert second is not None
        return [first.action, second.action]

    actions, _ = _run(store, twice)

    assert actions == [ReconcileAction.CREATED, ReconcileAction.NOOP]
    assert len(store.writes()) == 1


def test_duplicates_are_pruned_keeping_the_first_match() -> None:
    store = FakeRecordStore()
    store.add(make_record("Q100", {"P1": ["A", "A", "B"]}))

    result, _ = _run(store, _ensure("Q100", "P1", "A"))

    assert isinstance(result, ReconciliationResult)
    assert result.action is ReconcileAction.DEDUPLICATED
    assert store.writes() == [("remove", "Q100$P1-1"), ("remove", "Q100$P1-2")]
    assert store.records["Q100"].values("P1") == ("A",)


def test_single_wrong_value_is_updated_in_place() -> None:
    store = FakeRecordStore()
    store.add(make_record("Q100", {"P1": ["B"]}))

    result, _ = _run(store, _ensure("Q100", "P1", "A"))

    assert isinstance(result, ReconciliationResult)
    assert result.action is ReconcileAction.UPDATED
    assert store.writes() == [("update", "Q100$P1-0", "A")]


def test_several_wrong_values_are_replaced() -> None:
    store = FakeRecordStore()
    store.add(make_record("Q100", {"P1": ["B", "C"]}))

    result, _ = _run(store, _ensure("Q100", "P1", "A"))

    assert isinstance(result, ReconciliationResult)
    assert result.action is ReconcileAction.REPLACED
    assert [call[0] for call in store.writes()] == ["remove", "remove", "create"]
    assert store.records["Q100"].values("P1") == ("A",)


def test_store_encoded_quantity_matches_plain_number() -> None:
    store = FakeRecordStore()
    store.add(make_record("Q100", {"P62": [Quantity.parse("+42")]}))

    result, _ = _run(store, _ensure("Q100", "P62", 42))

    assert isinstance(result, ReconciliationResult)
    assert result.action is ReconcileAction.NOOP
    assert store.writes() == []


def test_missing_reference_is_added_to_matching_claim() -> None:
    store = FakeRecordStore()
    store.add(make_record("Q100", {"P1": ["A"]}))

    result, _ = _run(
        store, _ensure("Q100", "P1", "A", references={"P21": ["https://wiki.example/log"]})
    )

    assert isinstance(result, ReconciliationResult)
    assert result.referenced == "Q100$P1-0"
    assert store.writes() == [("reference", "Q100$P1-0")]


def test_reconciliations_never_overlap() -> None:
    store = FakeRecordStore(write_delay=0.005)
    store.add(make_record("Q100", {"P1": ["B", "C"]}))
    store.add(make_record("Q200", {"P1": ["B"]}))

    async def many(reconciler: ClaimReconciler) -> None:
        jobs = [
            reconciler.ensure("Q100", "P1", "A"),
            reconciler.ensure("Q200", "P1", "A"),
            reconciler.ensure("Q100", "P57", "1.41.0"),
            reconciler.ensure("Q200", "P62", 10),
        ]
        for job in jobs:
            await job.wait()

    _run(store, many)

    assert store.max_in_flight == 1
    reads = [index for index, call in enumerate(store.calls) if call[0] == "get"]
    assert [store.calls[index][1] for index in reads] == ["Q100", "Q200", "Q100", "Q200"]


def test_concurrent_ensures_on_one_property_run_in_order() -> None:
    store = FakeRecordStore(write_delay=0.005)
    store.add(make_record("Q100"))

    async def racing(reconciler: ClaimReconciler) -> list[ReconcileAction]:
        first = reconciler.ensure("Q100", "P1", "https://a.example")
        second = reconciler.ensure("Q100", "P1", "https://b.example")
        results = await asyncio.gather(first.wait(), second.wait())
        return [result.action for result in results if result is not None]

    actions, _ = _run(store, racing)

    assert actions == [ReconcileAction.CREATED, ReconcileAction.UPDATED]
    assert store.max_in_flight == 1
    assert [call[0] for call in store.writes()] == ["create", "update"]
    assert store.records["Q100"].values("P1") == ("https://b.example",)
    assert len(store.records["Q100"].claims_for("P1")) == 1


def test_throttled_writes_are_retried_after_backoff() -> None:
    store = FakeRecordStore(write_errors=[TooManyRequestsError("slow down", code="ratelimited")])
    store.add(make_record("Q100"))

    result, sleeps = _run(store, _ensure("Q100", "P57", "1.41.0"))

    assert isinstance(result, ReconciliationResult)
    assert result.action is ReconcileAction.CREATED
    assert sleeps == [10.0]
    assert len(store.writes("create")) == 1


def test_read_failure_aborts_without_writing() -> None:
    store = FakeRecordStore(read_error=RecordStoreError("boom"))

    result, _ = _run(store, _ensure("Q100", "P57", "1.41.0"))

    assert isinstance(result, ReconciliationResult)
    assert result.action is ReconcileAction.ABORTED
    assert store.writes() == []


def test_write_failure_is_reported() -> None:
    store = FakeRecordStore(write_errors=[RecordStoreError("protected", code="protectedpage")])
    store.add(make_record("Q100"))

    result, _ = _run(store, _ensure("Q100", "P57", "1.41.0"))

    assert isinstance(result, ReconciliationResult)
    assert result.action is ReconcileAction.FAILED
    assert result.error == "protected"


def test_includes_mode_adds_without_touching_other_values() -> None:
    store = FakeRecordStore()
    store.add(make_record("Q100", {"P37": [EntityRef("Q285"), EntityRef("Q286")]}))

    result, _ = _run(
        store,
        _ensure("Q100", "P37", EntityRef("Q287"), mode=ClaimMode.INCLUDES),
    )

    assert isinstance(result, ReconciliationResult)
    assert result.action is ReconcileAction.CREATED
    assert store.records["Q100"].values("P37") == (
        EntityRef("Q285"),
        EntityRef("Q286"),
        EntityRef("Q287"),
    )


def test_includes_mode_prunes_only_duplicates_of_the_value() -> None:
    store = FakeRecordStore()
    store.add(
        make_record(
            "Q100", {"P37": [EntityRef("Q285"), EntityRef("Q286"), EntityRef("Q285")]}
        )
    )

    result, _ = _run(
        store,
        _ensure("Q100", "P37", EntityRef("Q285"), mode=ClaimMode.INCLUDES),
    )

    assert isinstance(result, ReconciliationResult)
    assert result.action is ReconcileAction.DEDUPLICATED
    assert store.writes() == [("remove", "Q100$P37-2")]


def test_overlong_descriptions_are_skipped() -> None:
    store = FakeRecordStore()

    async def describe(reconciler: ClaimReconciler) -> bool | None:
        return await reconciler.set_description(
            "Q100", "en", "x" * (MAX_DESCRIPTION_LENGTH + 1), summary="Description"
        ).wait()

    written, _ = _run(store, describe)

    assert written is False
    assert store.writes() == []


def test_term_edits_run_on_the_queue() -> None:
    store = FakeRecordStore()

    async def terms(reconciler: ClaimReconciler) -> list[bool | None]:
        jobs = [
            reconciler.set_label("Q100", "en", "Example", summary="Label"),
            reconciler.set_description("Q100", "en", "A wiki", summary="Description"),
            reconciler.add_alias("Q100", "en", "Ex", summary="Alias"),
            reconciler.remove_alias("Q100", "en", "Main Page - Ex", summary="Alias"),
        ]
        return [await job.wait() for job in jobs]

    results, _ = _run(store, terms)

    assert results == [True, True, True, True]
    assert [call[0] for call in store.writes()] == ["label", "description", "alias+", "alias-"]
