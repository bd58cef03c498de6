"""Tests for the access filter registry: ordering, run-all semantics, isolation, lifecycle."""

import unittest

from media_access.hooks import (
    AccessFilterRegistry,
    BaseAccessFilter,
    access_filters,
    add_access_filter,
    import_filter,
    load_filters,
)


class TestAccessFilterChain(unittest.TestCase):

    def setUp(self):
        self.registry = AccessFilterRegistry()

    def test_empty_chain_returns_candidate(self):
        self.assertEqual(self.registry.apply("/up/a.pdf", "a.pdf", 0), "/up/a.pdf")

    def test_callbacks_receive_previous_value_and_context(self):
        seen = []

        def first(candidate, relative, attachment_id):
            seen.append(("first", candidate, relative, attachment_id))
            return "/up/substitute.pdf"

        def second(candidate, relative, attachment_id):
            seen.append(("second", candidate, relative, attachment_id))
            return candidate

        self.registry.add_filter(first)
        self.registry.add_filter(second)
        result = self.registry.apply("/up/a.pdf", "a.pdf", 7)

        self.assertEqual(result, "/up/substitute.pdf")
        self.assertEqual(seen, [
            ("first", "/up/a.pdf", "a.pdf", 7),
            ("second", "/up/substitute.pdf", "a.pdf", 7),
        ])

    def test_denial_does_not_short_circuit(self):
        calls = []

        def deny(candidate, relative, attachment_id):
            calls.append("deny")
            return False

        def regrant(candidate, relative, attachment_id):
            calls.append("regrant")
            return "/up/a.pdf" if candidate is False else candidate

        self.registry.add_filter(deny)
        self.registry.add_filter(regrant)
        self.assertEqual(self.registry.apply("/up/a.pdf", "a.pdf", 0), "/up/a.pdf")
        self.assertEqual(calls, ["deny", "regrant"])

    def test_last_denial_wins(self):
        self.registry.add_filter(lambda c, r, a: c)
        self.registry.add_filter(lambda c, r, a: "")
        self.assertEqual(self.registry.apply("/up/a.pdf", "a.pdf", 0), "")

    def test_priority_orders_before_registration(self):
        order = []
        self.registry.add_filter(lambda c, r, a: order.append("late") or c, priority=20)
        self.registry.add_filter(lambda c, r, a: order.append("default") or c)
        self.registry.add_filter(lambda c, r, a: order.append("early") or c, priority=5)
        self.registry.add_filter(lambda c, r, a: order.append("default2") or c)
        self.registry.apply("/up/a.pdf", "a.pdf", 0)
        self.assertEqual(order, ["early", "default", "default2", "late"])

    def test_failing_callback_passes_previous_value_through(self):
        def broken(candidate, relative, attachment_id):
            raise RuntimeError("boom")

        self.registry.add_filter(lambda c, r, a: "/up/b.pdf")
        self.registry.add_filter(broken)
        with self.assertLogs("media-access", level="ERROR") as cm:
            result = self.registry.apply("/up/a.pdf", "a.pdf", 0)
        self.assertEqual(result, "/up/b.pdf")
        self.assertIn("broken", cm.output[0])

    def test_class_based_filter(self):
        class OnlyAttachments(BaseAccessFilter):
            def filter(self, candidate_path, relative_path, attachment_id):
                return candidate_path if attachment_id else False

        self.registry.add_filter(OnlyAttachments())
        self.assertFalse(self.registry.apply("/up/a.pdf", "a.pdf", 0))
        self.assertEqual(self.registry.apply("/up/a.pdf", "a.pdf", 3), "/up/a.pdf")

    def test_non_callable_rejected(self):
        with self.assertRaises(TypeError):
            self.registry.add_filter("not callable")


class TestRegistryLifecycle(unittest.TestCase):

    def setUp(self):
        self.registry = AccessFilterRegistry()

    def test_frozen_registry_rejects_changes(self):
        cb = lambda c, r, a: c  # noqa: E731
        self.registry.add_filter(cb)
        self.registry.freeze()
        self.assertTrue(self.registry.frozen)
        with self.assertRaises(RuntimeError):
            self.registry.add_filter(lambda c, r, a: c)
        with self.assertRaises(RuntimeError):
            self.registry.remove_filter(cb)
        self.assertEqual(len(self.registry), 1)

    def test_clear_empties_and_unfreezes(self):
        self.registry.add_filter(lambda c, r, a: False)
        self.registry.freeze()
        self.registry.clear()
        self.assertFalse(self.registry.frozen)
        self.assertEqual(len(self.registry), 0)
        self.registry.add_filter(lambda c, r, a: c)
        self.assertEqual(len(self.registry), 1)

    def test_remove_filter(self):
        cb = lambda c, r, a: False  # noqa: E731
        self.registry.add_filter(cb)
        self.assertTrue(self.registry.remove_filter(cb))
        self.assertFalse(self.registry.remove_filter(cb))
        self.assertEqual(self.registry.apply("/up/a.pdf", "a.pdf", 0), "/up/a.pdf")


class TestLoadFilters(unittest.TestCase):

    def test_import_colon_path(self):
        from sample_filters import deny_all

        self.assertIs(import_filter("sample_filters:deny_all"), deny_all)

    def test_import_dotted_path(self):
        from sample_filters import allow_unchanged

        self.assertIs(import_filter("sample_filters.allow_unchanged"), allow_unchanged)

    def test_filter_class_is_instantiated(self):
        from sample_filters import MembersOnlyFilter

        self.assertIsInstance(import_filter("sample_filters:MembersOnlyFilter"), MembersOnlyFilter)

    def test_invalid_paths_raise_value_error(self):
        for bad in ("", "nomodule", "does_not_exist_pkg:thing", "sample_filters:missing"):
            with self.subTest(path=bad):
                with self.assertRaises(ValueError):
                    import_filter(bad)

    def test_load_filters_registers_in_order(self):
        registry = AccessFilterRegistry()
        count = load_filters(registry, ["sample_filters:deny_all", "sample_filters:allow_unchanged"])
        self.assertEqual(count, 2)
        # deny_all runs first, allow_unchanged passes the False through
        self.assertFalse(registry.apply("/up/a.pdf", "a.pdf", 0))


class TestProcessWideRegistry(unittest.TestCase):

    def tearDown(self):
        access_filters.clear()

    def test_decorator_registers_and_returns_function(self):
        @add_access_filter
        def deny(candidate, relative, attachment_id):
            return False

        self.assertIn(deny, access_filters.filters())
        self.assertFalse(access_filters.apply("/up/a.pdf", "a.pdf", 0))
