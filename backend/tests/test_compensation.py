from services.compensation import CompensationLog


def test_unwind_runs_undo_actions_newest_first():
    calls = []
    saga = CompensationLog("test")
    saga.record("first", undo=lambda: calls.append("first"))
    saga.record("second", undo=lambda: calls.append("second"))

    leftovers = saga.unwind()

    assert calls == ["second", "first"]
    assert leftovers == []
    assert saga.steps == []


def test_steps_without_undo_are_reported_as_orphans(caplog):
    calls = []
    saga = CompensationLog("create_book")
    saga.record("staged cover", undo=lambda: calls.append("cover"))
    saga.record("remote image book-covers/abc")

    with caplog.at_level("WARNING"):
        leftovers = saga.unwind()

    assert calls == ["cover"]
    assert leftovers == ["remote image book-covers/abc"]
    assert "orphan" in caplog.text


def test_failing_undo_does_not_stop_the_rest():
    calls = []

    def boom():
        raise OSError("disk gone")

    saga = CompensationLog("test")
    saga.record("kept", undo=lambda: calls.append("kept"))
    saga.record("broken", undo=boom)

    leftovers = saga.unwind()

    assert calls == ["kept"]
    assert leftovers == ["broken"]
