from qa_bridge.services.session_ids import SessionIdAllocator


def test_ids_use_prefix_and_clock_value():
    allocator = SessionIdAllocator(clock=lambda: 1718000000000)

    assert allocator.allocate() == "run_1718000000000"


def test_same_millisecond_yields_distinct_ids():
    allocator = SessionIdAllocator(clock=lambda: 1718000000000)

    ids = [allocator.allocate() for _ in range(3)]

    assert ids == ["run_1718000000000", "run_1718000000001", "run_1718000000002"]


def test_clock_going_backwards_keeps_ids_increasing():
    readings = iter([2000, 1000, 3000])
    allocator = SessionIdAllocator(clock=lambda: next(readings))

    assert [allocator.allocate() for _ in range(3)] == ["run_2000", "run_2001", "run_3000"]


def test_real_clock_ids_are_unique():
    allocator = SessionIdAllocator()

    ids = [allocator.allocate() for _ in range(500)]

    assert len(set(ids)) == 500
    assert all(session_id.startswith("run_") for session_id in ids)
