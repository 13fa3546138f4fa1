"""SequenceService: locked, gap-free named counters."""

from supply_kernel.services.sequence_service import SequenceService


class TestNextValue:

    def test_new_sequence_starts_at_one(self, session):
        seq = SequenceService(session)
        assert seq.next_value("po_number:202610") == 1
        assert seq.current_value("po_number:202610") == 1

    def test_increments_monotonically(self, session):
        seq = SequenceService(session)
        values = [seq.next_value("orders") for _ in range(5)]
        assert values == [1, 2, 3, 4, 5]

    def test_sequences_are_independent(self, session):
        seq = SequenceService(session)
        seq.next_value("a")
        seq.next_value("a")
        assert seq.next_value("b") == 1

    def test_floor_seeds_a_new_counter(self, session):
        seq = SequenceService(session)
        assert seq.next_value("seeded", floor=41) == 42

    def test_floor_ignored_once_counter_exists(self, session):
        seq = SequenceService(session)
        seq.next_value("seeded")
        assert seq.next_value("seeded", floor=100) == 2

    def test_current_value_of_unknown_sequence_is_none(self, session):
        assert SequenceService(session).current_value("nope") is None

    def test_rolled_back_value_is_reissued(self, session):
        seq = SequenceService(session)
        seq.next_value("gapless")
        session.commit()
        seq.next_value("gapless")
        session.rollback()
        assert seq.next_value("gapless") == 2

    def test_allocations_are_logged(self, session, captured_logs):
        seq = SequenceService(session)
        seq.next_value("logged")
        seq.next_value("logged")

        records = [r for r in captured_logs() if r["message"] == "sequence_allocated"]
        assert [r["value"] for r in records] == [1, 2]
        assert records[0]["counter_created"] is True
        assert "counter_created" not in records[1]
