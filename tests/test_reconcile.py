import random
from dataclasses import replace

from regionais_sync.pipeline.regional_source import ExternalRegional as E
from regionais_sync.pipeline.regional_sync import SyncSummary, reconcile
from regionais_sync.repo.regionais import Regional as R


def _apply(local, plan):
    """Apply a plan to an in-memory list of records the way the driver does."""
    by_id = {r.id: r for r in local}
    for r in plan.to_inactivate:
        by_id[r.id] = replace(by_id[r.id], ativo=False)
    for r in plan.to_reactivate:
        by_id[r.id] = replace(by_id[r.id], ativo=True)
    next_id = max(by_id, default=0) + 1
    for entry in plan.to_insert:
        by_id[next_id] = R(next_id, entry.external_id, entry.nome, True)
        next_id += 1
    return [by_id[k] for k in sorted(by_id)]


def _assert_covered(external, local):
    for entry in external:
        active = [r for r in local if r.external_id == entry.external_id and r.ativo]
        assert len(active) == 1
        assert active[0].nome == entry.nome


def test_inserts_everything_into_empty_table():
    external = [E(1, "Regional Norte"), E(2, "Regional Sul")]
    plan = reconcile(external, [])

    assert plan.to_insert == (E(1, "Regional Norte"), E(2, "Regional Sul"))
    assert plan.to_inactivate == () and plan.to_reactivate == ()
    assert plan.summary == SyncSummary(inserted=2)

    result = _apply([], plan)
    assert len([r for r in result if r.ativo]) == 2


def test_inactivates_record_missing_from_source():
    norte = R(1, 1, "Regional Norte", True)
    sul = R(2, 2, "Regional Sul", True)
    plan = reconcile([E(1, "Regional Norte")], [norte, sul])

    assert plan.to_inactivate == (sul,)
    assert plan.to_insert == () and plan.to_reactivate == ()
    assert plan.summary == SyncSummary(inactivated=1)

    result = _apply([norte, sul], plan)
    assert [r.ativo for r in result] == [True, False]


def test_rename_inactivates_old_row_and_inserts_new_one():
    norte = R(1, 1, "Regional Norte", True)
    plan = reconcile([E(1, "Regional Norte Atualizado")], [norte])

    assert plan.to_inactivate == (norte,)
    assert plan.to_insert == (E(1, "Regional Norte Atualizado"),)
    assert plan.summary == SyncSummary(updated=1)

    result = _apply([norte], plan)
    assert len([r for r in result if r.external_id == 1]) == 2
    assert [r.nome for r in result if r.ativo] == ["Regional Norte Atualizado"]
    assert result[0].nome == "Regional Norte" and not result[0].ativo


def test_name_comparison_is_case_sensitive():
    norte = R(1, 1, "Regional Norte", True)
    plan = reconcile([E(1, "REGIONAL NORTE")], [norte])
    assert plan.summary.updated == 1


def test_reactivates_inactive_record_in_place():
    norte = R(1, 1, "Regional Norte", False)
    plan = reconcile([E(1, "Regional Norte")], [norte])

    assert plan.to_reactivate == (norte,)
    assert plan.to_insert == () and plan.to_inactivate == ()
    assert plan.summary == SyncSummary(reactivated=1)

    result = _apply([norte], plan)
    assert len(result) == 1 and result[0].ativo


def test_unchanged_active_record_needs_no_write():
    norte = R(1, 1, "Regional Norte", True)
    plan = reconcile([E(1, "Regional Norte")], [norte])
    assert plan.is_empty
    assert plan.summary == SyncSummary()


def test_inactive_record_with_new_name_gets_a_new_active_row():
    old = R(1, 1, "Regional Norte", False)
    plan = reconcile([E(1, "Regional Norte II")], [old])

    assert plan.to_insert == (E(1, "Regional Norte II"),)
    assert plan.to_inactivate == () and plan.to_reactivate == ()
    assert plan.summary == SyncSummary(updated=1)


def test_legacy_records_never_appear_in_plan():
    legacy_active = R(1, None, "Regional Norte", True)
    legacy_inactive = R(2, None, "Regional Sul", False)
    local = [legacy_active, legacy_inactive, R(3, 7, "Regional Oeste", True)]

    for external in ([], [E(1, "Regional Norte")], [E(7, "Outra")], [E(2, "Regional Sul")]):
        plan = reconcile(external, local)
        touched = list(plan.to_inactivate) + list(plan.to_reactivate)
        assert legacy_active not in touched
        assert legacy_inactive not in touched


def test_duplicate_external_ids_last_occurrence_wins():
    plan = reconcile([E(1, "Primeiro"), E(1, "Segundo")], [])
    assert plan.to_insert == (E(1, "Segundo"),)


def test_duplicate_active_rows_keep_highest_id():
    older = R(1, 1, "Regional Norte", True)
    newer = R(5, 1, "Regional Norte", True)
    plan = reconcile([E(1, "Regional Norte")], [newer, older])

    assert plan.to_inactivate == (older,)
    assert plan.to_insert == () and plan.to_reactivate == ()
    _assert_covered([E(1, "Regional Norte")], _apply([older, newer], plan))


def test_history_rows_reactivate_the_one_matching_the_name():
    first = R(1, 1, "Regional Norte", False)
    renamed = R(2, 1, "Regional Norte II", False)
    plan = reconcile([E(1, "Regional Norte")], [renamed, first])

    assert plan.to_reactivate == (first,)
    assert plan.to_insert == ()


def test_history_rows_with_active_current_row_only_touch_current():
    history = R(1, 1, "Regional Norte", False)
    current = R(2, 1, "Regional Norte II", True)
    plan = reconcile([E(1, "Regional Norte")], [history, current])

    # renaming back inserts a fresh row rather than reviving the old one
    assert plan.to_inactivate == (current,)
    assert plan.to_insert == (E(1, "Regional Norte"),)
    assert plan.to_reactivate == ()


def _mixed_state():
    external = [
        E(1, "Regional Norte"),
        E(2, "Regional Sul Atualizado"),
        E(3, "Regional Leste"),
        E(5, "Regional Centro"),
        E(6, "Regional Nova"),
    ]
    local = [
        R(1, 1, "Regional Norte", True),
        R(2, 2, "Regional Sul", True),
        R(3, 3, "Regional Leste", False),
        R(4, 4, "Regional Oeste", True),
        R(5, None, "Legada", True),
        R(6, 5, "Regional Centro", True),
        R(7, 5, "Regional Centro", True),
        R(8, 4, "Regional Oeste Antiga", False),
    ]
    return external, local


def test_plan_is_order_independent():
    external, local = _mixed_state()
    expected = reconcile(external, local)
    rng = random.Random(1234)
    for _ in range(20):
        ext = list(external)
        loc = list(local)
        rng.shuffle(ext)
        rng.shuffle(loc)
        assert reconcile(ext, loc) == expected


def test_second_run_is_empty_and_state_is_covered():
    external, local = _mixed_state()
    first = reconcile(external, local)
    assert not first.is_empty

    converged = _apply(local, first)
    _assert_covered(external, converged)
    assert len(converged) >= len(local)

    second = reconcile(external, converged)
    assert second.is_empty
    assert second.summary == SyncSummary()


def test_mixed_state_summary_counts():
    external, local = _mixed_state()
    plan = reconcile(external, local)

    # 6 is new; 2 renamed; 3 reactivated; 4 gone; one duplicate of 5 dropped
    assert plan.summary == SyncSummary(inserted=1, updated=1, inactivated=2, reactivated=1)
    assert [r.id for r in plan.to_inactivate] == [2, 4, 6]
    assert [r.id for r in plan.to_reactivate] == [3]
    assert plan.to_insert == (E(2, "Regional Sul Atualizado"), E(6, "Regional Nova"))
    assert plan.write_count == 6


def test_lists_in_plan_are_disjoint():
    external, local = _mixed_state()
    plan = reconcile(external, local)
    inactivated = {r.id for r in plan.to_inactivate}
    reactivated = {r.id for r in plan.to_reactivate}
    assert not inactivated & reactivated
