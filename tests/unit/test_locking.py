"""Unit tests for per-configuration locks."""

import threading

from serverbuild.application.allocation import ConfigurationLocks


class TestConfigurationLocks:
    """Tests for ConfigurationLocks."""

    def test_same_lock_per_configuration(self) -> None:
        """The same id should always return the same lock."""
        locks = ConfigurationLocks()
        assert locks.get("cfg-1") is locks.get("cfg-1")
        assert locks.get("cfg-1") is not locks.get("cfg-2")

    def test_lock_is_reentrant(self) -> None:
        """Nested lock() calls from one thread should not deadlock."""
        locks = ConfigurationLocks()
        with locks.lock("cfg-1"):
            with locks.lock("cfg-1"):
                entered = True
        assert entered

    def test_lock_excludes_other_threads(self) -> None:
        """Another thread should not acquire a held lock."""
        locks = ConfigurationLocks()
        acquired = []

        def try_acquire() -> None:
            lock = locks.get("cfg-1")
            got = lock.acquire(blocking=False)
            acquired.append(got)
            if got:
                lock.release()

        with locks.lock("cfg-1"):
            worker = threading.Thread(target=try_acquire)
            worker.start()
            worker.join()

        assert acquired == [False]

    def test_concurrent_assignments_do_not_collide(self, factory) -> None:
        """Parallel slot assignments should hand out distinct slots."""
        service = factory.get_configuration_service()
        config_id = service.create_configuration().config_id
        service.add_component(config_id, "motherboard", "mb-x13")
        tracker = factory.get_slot_tracker()
        results = []

        def assign(n: int) -> None:
            results.append(tracker.assign_slot(config_id, "x8", f"card-{n}"))

        workers = [threading.Thread(target=assign, args=(n,)) for n in range(6)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        placed = [slot for slot in results if slot is not None]
        assert len(placed) == 4
        assert len(set(placed)) == 4

    def test_discard(self) -> None:
        """discard should forget the lock and tolerate unknown ids."""
        locks = ConfigurationLocks()
        first = locks.get("cfg-1")
        locks.discard("cfg-1")
        locks.discard("cfg-unknown")
        assert locks.get("cfg-1") is not first
