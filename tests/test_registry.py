from __future__ import annotations

import threading
import unittest

from cmdpalette.registry import CURRENT_GROUP, DEFAULT_INITIAL_PRIORITY, CommandRegistry


def _noop() -> None:
    pass


class CommandRegistryTests(unittest.TestCase):
    def test_readding_a_name_replaces_its_action_and_ranks_it_first(self) -> None:
        registry = CommandRegistry()
        f1, f2, f3 = (lambda: 1), (lambda: 2), (lambda: 3)

        registry.add("x", f1)
        registry.add("y", f2)
        registry.add("x", f3)

        self.assertEqual(len(registry), 2)
        self.assertIs(registry.get("x").action, f3)
        self.assertEqual(registry.names(), ["x", "y"])

    def test_remove_of_absent_name_changes_nothing(self) -> None:
        registry = CommandRegistry()
        registry.add("a", _noop)
        before = registry.snapshot()

        registry.remove("z")

        self.assertEqual(registry.snapshot(), before)
        registry.remove("a")
        registry.remove("a")
        self.assertEqual(len(registry), 0)
        self.assertNotIn("a", registry)

    def test_priority_zero_opens_group_and_returned_priority_joins_it(self) -> None:
        registry = CommandRegistry()

        group = registry.add("b", _noop)
        self.assertEqual(group, DEFAULT_INITIAL_PRIORITY + 1)
        self.assertEqual(registry.add("a", _noop, group), group)
        self.assertEqual(registry.add("c", _noop, CURRENT_GROUP), group)

        self.assertEqual(registry.names(), ["a", "b", "c"])
        self.assertEqual(registry.add("d", _noop), group + 1)
        self.assertEqual(registry.names()[0], "d")

    def test_explicit_priority_raises_maximum_and_low_priority_sorts_last(self) -> None:
        registry = CommandRegistry()
        registry.add("high", _noop, 50)
        registry.add("low", _noop, 2)

        self.assertEqual(registry.max_priority, 50)
        self.assertEqual(registry.add("next", _noop), 51)
        self.assertEqual(registry.names(), ["next", "high", "low"])

    def test_touch_promotes_command_above_everything(self) -> None:
        registry = CommandRegistry()
        registry.add("a", _noop)
        registry.add("b", _noop)

        touched = registry.touch("a")

        self.assertIsNotNone(touched)
        self.assertEqual(touched.priority, registry.max_priority)
        self.assertEqual(registry.names(), ["a", "b"])
        self.assertIsNone(registry.touch("missing"))

    def test_blank_names_are_ignored(self) -> None:
        registry = CommandRegistry()

        self.assertEqual(registry.add("   ", _noop), 0)
        self.assertEqual(registry.add("", _noop, 7), 7)
        self.assertEqual(len(registry), 0)

    def test_snapshot_is_detached_from_later_changes(self) -> None:
        registry = CommandRegistry()
        registry.add("a", _noop)
        snapshot = registry.snapshot()

        registry.add("b", _noop)
        registry.remove("a")

        self.assertEqual([command.name for command in snapshot], ["a"])

    def test_concurrent_adds_and_removes_keep_registry_consistent(self) -> None:
        registry = CommandRegistry()

        def worker(prefix: str) -> None:
            for idx in range(200):
                registry.add(f"{prefix}-{idx}", _noop)
                if idx % 2:
                    registry.remove(f"{prefix}-{idx}")
                registry.snapshot()

        threads = [threading.Thread(target=worker, args=(f"t{n}",)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(registry), 4 * 100)
        priorities = [command.priority for command in registry.snapshot()]
        self.assertEqual(len(set(priorities)), len(priorities))


if __name__ == "__main__":
    unittest.main()
