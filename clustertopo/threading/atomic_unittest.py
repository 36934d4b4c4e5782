import threading

from clustertopo.threading.atomic import Atomic


def test_atomic_set_get_basic() -> None:
    """Test basic set and get functionality."""
    atomic_str = Atomic[str]("localhost:3301")
    assert atomic_str.get() == "localhost:3301"

    atomic_str.set("localhost:3302")
    assert atomic_str.get() == "localhost:3302"


def test_atomic_get_and_set_returns_previous() -> None:
    atomic_tuple = Atomic[tuple[str, ...]](("a", "b"))

    previous = atomic_tuple.get_and_set(("c",))

    assert previous == ("a", "b")
    assert atomic_tuple.get() == ("c",)


def test_atomic_get_returns_same_reference() -> None:
    """get() hands back the stored object itself rather than a copy."""
    value = ("host1", "host2")
    atomic_tuple = Atomic[tuple[str, ...]](value)

    assert atomic_tuple.get() is value
    assert atomic_tuple.get() is atomic_tuple.get()


def test_atomic_readers_never_see_mixed_values() -> None:
    """Readers racing a writer only ever observe whole published tuples."""
    old_value = tuple(f"old-{i}" for i in range(50))
    new_value = tuple(f"new-{i}" for i in range(50))
    atomic_tuple = Atomic[tuple[str, ...]](old_value)
    stop_event = threading.Event()
    observed_bad: list[tuple[str, ...]] = []

    def reader() -> None:
        while not stop_event.is_set():
            seen = atomic_tuple.get()
            if seen is not old_value and seen is not new_value:
                observed_bad.append(seen)

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for thread in readers:
        thread.start()

    for i in range(1000):
        atomic_tuple.set(new_value if i % 2 == 0 else old_value)

    stop_event.set()
    for thread in readers:
        thread.join(timeout=5.0)

    assert not observed_bad


def test_atomic_set_different_instances() -> None:
    """Test that setting a value in one Atomic instance does not affect another."""
    atomic1 = Atomic[int](1)
    atomic2 = Atomic[int](100)

    atomic1.set(5)
    assert atomic1.get() == 5
    assert atomic2.get() == 100
