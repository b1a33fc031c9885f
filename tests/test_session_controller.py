from decimal import Decimal

import pytest
from sqlalchemy import delete

from app.core.errors import ConnectivityError, PersistenceError
from app.models.configuration_setting import ConfigurationSetting
from app.services.baseline_store import SettingRow
from app.services.edit_reconciler import PAIR_BY_POSITION
from app.services.outcomes import (
    Accepted,
    NotConnected,
    PersistenceFailed,
    RenameRejected,
    StructuralMismatch,
    ValidationRejected,
)
from app.services.persister import TransactionalPersister
from app.services.session_controller import SessionContext, SessionController, SessionState
from app.services.settings_store import SqlAlchemyStore

from conftest import insert_raw, stored_values


class CountingPersister(TransactionalPersister):
    def __init__(self):
        self.calls = 0

    def persist(self, store, rows):
        self.calls += 1
        return super().persist(store, rows)


def edited(baseline, **changes):
    return [SettingRow(row.key, changes.get(row.key, row.value)) for row in baseline]


def test_load_captures_baseline_and_enters_loaded_state(controller, session_context):
    baseline = controller.load(session_context)
    assert baseline.keys == ("MaxRetries", "Timeout")
    assert session_context.baseline is baseline
    assert session_context.state == SessionState.LOADED


def test_submit_without_edits_round_trips_to_same_baseline(controller, session_context):
    original = controller.load(session_context)
    outcome = controller.submit(session_context, list(original))
    assert isinstance(outcome, Accepted)
    assert outcome.baseline == original
    assert controller.load(session_context) == original


def test_submit_edited_value_is_accepted_and_reloaded(controller, session_context, store):
    baseline = controller.load(session_context)
    outcome = controller.submit(session_context, edited(baseline, Timeout="45.5"))

    assert isinstance(outcome, Accepted)
    assert outcome.kind == "accepted"
    assert stored_values(store) == {"MaxRetries": Decimal("3.00"), "Timeout": Decimal("45.50")}
    assert session_context.baseline is outcome.baseline
    assert outcome.baseline.rows[1] == SettingRow("Timeout", Decimal("45.50"))


def test_submit_rounds_before_writing(controller, session_context, store):
    baseline = controller.load(session_context)
    controller.submit(session_context, edited(baseline, MaxRetries="12.345"))
    assert stored_values(store)["MaxRetries"] == Decimal("12.35")


def test_rename_is_rejected_without_any_store_write(session_context, store):
    persister = CountingPersister()
    controller = SessionController(persister=persister)
    controller.load(session_context)

    candidates = [SettingRow("MaxRetry", "5"), SettingRow("Timeout", "30")]
    outcome = controller.submit(session_context, candidates)

    assert isinstance(outcome, RenameRejected)
    assert [row.key for row in outcome.corrected] == ["MaxRetries", "Timeout"]
    assert outcome.corrected[0].value == "5"
    assert persister.calls == 0
    assert stored_values(store) == {"MaxRetries": Decimal("3.00"), "Timeout": Decimal("30.00")}
    assert session_context.state == SessionState.LOADED


def test_corrected_set_can_be_resubmitted(controller, session_context, store):
    controller.load(session_context)
    outcome = controller.submit(session_context, [SettingRow("MaxRetry", "5"), SettingRow("Timeout", "30")])
    resubmitted = controller.submit(session_context, outcome.corrected)
    assert isinstance(resubmitted, Accepted)
    assert stored_values(store)["MaxRetries"] == Decimal("5.00")


def test_non_numeric_value_is_rejected_with_key(controller, session_context, store):
    baseline = controller.load(session_context)
    outcome = controller.submit(session_context, edited(baseline, Timeout="abc"))
    assert outcome == ValidationRejected(key="Timeout", reason=outcome.reason)
    assert stored_values(store)["Timeout"] == Decimal("30.00")


@pytest.mark.parametrize("raw", ["-0.01", "100000000.00", "abc"])
def test_out_of_range_values_never_reach_the_store(raw, session_context, store):
    persister = CountingPersister()
    controller = SessionController(persister=persister)
    baseline = controller.load(session_context)
    outcome = controller.submit(session_context, edited(baseline, MaxRetries=raw))
    assert isinstance(outcome, ValidationRejected)
    assert outcome.key == "MaxRetries"
    assert persister.calls == 0


@pytest.mark.parametrize("raw,expected", [("99999999.99", Decimal("99999999.99")), ("0.00", Decimal("0.00"))])
def test_range_bounds_are_accepted(raw, expected, controller, session_context, store):
    baseline = controller.load(session_context)
    outcome = controller.submit(session_context, edited(baseline, MaxRetries=raw))
    assert isinstance(outcome, Accepted)
    assert stored_values(store)["MaxRetries"] == expected


def test_cardinality_mismatch_discards_edits_and_reloads(controller, session_context, store):
    controller.load(session_context)
    store.seed([SettingRow("Added", Decimal("1.00"))])

    outcome = controller.submit(session_context, [SettingRow("MaxRetries", "9")])

    assert isinstance(outcome, StructuralMismatch)
    assert outcome.baseline.keys == ("MaxRetries", "Timeout", "Added")
    assert session_context.baseline is outcome.baseline
    assert session_context.state == SessionState.LOADED
    assert stored_values(store)["MaxRetries"] == Decimal("3.00")


def test_submit_before_first_load_is_structural(controller, session_context):
    outcome = controller.submit(session_context, [SettingRow("MaxRetries", "9"), SettingRow("Timeout", "1")])
    assert isinstance(outcome, StructuralMismatch)
    assert session_context.baseline.keys == ("MaxRetries", "Timeout")


def test_row_removed_externally_rolls_back_whole_batch(controller, session_context, store):
    baseline = controller.load(session_context)
    with store.session_factory() as db:
        db.execute(delete(ConfigurationSetting).where(ConfigurationSetting.key == "Timeout"))
        db.commit()

    outcome = controller.submit(session_context, edited(baseline, MaxRetries="7"))

    assert isinstance(outcome, PersistenceFailed)
    assert outcome.key == "Timeout"
    assert stored_values(store) == {"MaxRetries": Decimal("3.00")}
    # The baseline is left as loaded; only a reload replaces it.
    assert session_context.baseline == baseline


def test_submit_when_disconnected_returns_not_connected(controller):
    ctx = SessionContext()
    outcome = controller.submit(ctx, [SettingRow("MaxRetries", "1")])
    assert isinstance(outcome, NotConnected)
    assert ctx.state == SessionState.DISCONNECTED


def test_load_when_disconnected_raises_connectivity_error(controller):
    with pytest.raises(ConnectivityError):
        controller.load(SessionContext())


def test_connect_rejects_bad_connection_string(controller):
    ctx = SessionContext()
    with pytest.raises(ConnectivityError, match="valid connection string"):
        controller.connect(ctx, "12345")
    assert ctx.state == SessionState.DISCONNECTED


def test_begin_edit_then_submit_returns_to_loaded(controller, session_context):
    baseline = controller.load(session_context)
    controller.begin_edit(session_context)
    assert session_context.state == SessionState.EDITING
    controller.submit(session_context, list(baseline))
    assert session_context.state == SessionState.LOADED


def test_key_pairing_applies_reordered_rows_by_key(controller, session_context, store):
    controller.load(session_context)
    outcome = controller.submit(session_context, [SettingRow("Timeout", "60"), SettingRow("MaxRetries", "4")])
    assert isinstance(outcome, Accepted)
    assert stored_values(store) == {"MaxRetries": Decimal("4.00"), "Timeout": Decimal("60.00")}


def test_positional_pairing_rejects_reordered_rows(session_context, store):
    controller = SessionController(pairing=PAIR_BY_POSITION)
    controller.load(session_context)
    outcome = controller.submit(session_context, [SettingRow("Timeout", "60"), SettingRow("MaxRetries", "4")])
    assert isinstance(outcome, RenameRejected)
    assert stored_values(store)["Timeout"] == Decimal("30.00")


def test_independent_sessions_keep_separate_baselines(controller, connection):
    first = SessionContext(connection=connection)
    second = SessionContext(connection=connection)
    controller.load(first)
    assert second.baseline is None
    assert second.state == SessionState.DISCONNECTED


def test_load_with_duplicate_stored_keys_is_a_persistence_error(controller, unconstrained_connection):
    insert_raw(unconstrained_connection, "A", "5.00")
    ctx = SessionContext(connection=unconstrained_connection)
    with pytest.raises(PersistenceError, match="Duplicate setting key"):
        controller.load(ctx)
    assert ctx.baseline is None



def test_key_matching_two_rows_rolls_back_whole_batch(controller, unconstrained_connection):
    ctx = SessionContext(connection=unconstrained_connection)
    controller.load(ctx)
    insert_raw(unconstrained_connection, "A", "5.00")

    outcome = controller.submit(ctx, [SettingRow("A", "7"), SettingRow("B", "8")])

    assert isinstance(outcome, PersistenceFailed)
    assert outcome.key == "A"
    assert "affected 2 rows" in outcome.reason
    store = unconstrained_connection.active_store()
    assert sorted(row.value for row in store.query()) == [Decimal("1.00"), Decimal("2.00"), Decimal("5.00")]
    assert ctx.state == SessionState.LOADED


def test_structural_reload_hitting_duplicate_keys_returns_mismatch(controller, unconstrained_connection):
    ctx = SessionContext(connection=unconstrained_connection)
    controller.load(ctx)
    insert_raw(unconstrained_connection, "A", "5.00")

    outcome = controller.submit(ctx, [SettingRow("A", "1")])

    assert isinstance(outcome, StructuralMismatch)
    assert outcome.baseline is None
    assert ctx.baseline is None
    assert ctx.state == SessionState.LOADED


def test_reload_after_commit_hitting_duplicate_keys_returns_persistence_failed(unconstrained_connection):
    class DuplicatingPersister(TransactionalPersister):
        def persist(self, store, rows):
            result = super().persist(store, rows)
            insert_raw(unconstrained_connection, "B", "9.00")
            return result

    controller = SessionController(persister=DuplicatingPersister())
    ctx = SessionContext(connection=unconstrained_connection)
    baseline = controller.load(ctx)

    outcome = controller.submit(ctx, list(baseline))

    assert isinstance(outcome, PersistenceFailed)
    assert outcome.reason.startswith("Settings saved but reload failed")
    assert ctx.baseline is None
    assert ctx.state == SessionState.LOADED


def test_failed_reload_after_mismatch_keeps_connected_session_loaded(controller, session_context, store, monkeypatch):
    controller.load(session_context)
    store.seed([SettingRow("Added", Decimal("1.00"))])

    def dropped_query(self):
        raise ConnectivityError("Failed to load configuration settings: connection reset")

    monkeypatch.setattr(SqlAlchemyStore, "query", dropped_query)
    outcome = controller.submit(session_context, [SettingRow("MaxRetries", "9")])

    assert isinstance(outcome, StructuralMismatch)
    assert outcome.baseline is None
    assert session_context.baseline is None
    assert session_context.connection.is_connected
    assert session_context.state == SessionState.LOADED

    monkeypatch.undo()
    outcome = controller.submit(session_context, [SettingRow("MaxRetries", "9")])
    assert isinstance(outcome, StructuralMismatch)
    assert session_context.baseline.keys == ("MaxRetries", "Timeout", "Added")
