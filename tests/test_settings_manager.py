"""Tests for the extension option store: sanitizing setter, persistence and listeners."""

import json
import os
import shutil
import tempfile
import unittest

from media_access.constants import SETTINGS_FILENAME
from media_access.managers.settings import (
    SettingsManager,
    sanitize_file_extensions_list,
    sanitize_settings,
)


class TestSanitizeFileExtensionsList(unittest.TestCase):

    def test_list_is_lowercased_stripped_and_filtered(self):
        self.assertEqual(sanitize_file_extensions_list([" PDF ", "doc!", ""]), ["pdf", "doc"])

    def test_space_separated_string(self):
        self.assertEqual(sanitize_file_extensions_list("pdf  ZIP .docx"), ["pdf", "zip", "docx"])

    def test_duplicates_keep_first_position(self):
        self.assertEqual(sanitize_file_extensions_list("pdf doc PDF"), ["pdf", "doc"])

    def test_only_symbols_yields_empty(self):
        self.assertEqual(sanitize_file_extensions_list(["...", "*", " "]), [])

    def test_none_yields_empty(self):
        self.assertEqual(sanitize_file_extensions_list(None), [])

    def test_sanitize_settings_omits_empty_extensions(self):
        self.assertEqual(sanitize_settings({"extensions": "!! ??"}), {})
        self.assertEqual(sanitize_settings({}), {})
        self.assertEqual(sanitize_settings({"extensions": "Mp3 pdf"}), {"extensions": "mp3 pdf"})


class TestSettingsManager(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.addCleanup(lambda: shutil.rmtree(self.tmp, ignore_errors=True))
        self.manager = SettingsManager(self.tmp)

    def test_missing_file_returns_no_extensions(self):
        self.assertEqual(self.manager.get_extensions(), [])
        self.assertEqual(self.manager.get_option(), {})
        self.assertIsNone(self.manager.version)

    def test_update_persists_sanitized_string(self):
        stored = self.manager.update_extensions([" PDF ", "doc!", ""])
        self.assertEqual(stored, ["pdf", "doc"])
        with open(os.path.join(self.tmp, SETTINGS_FILENAME), encoding="utf-8") as f:
            self.assertEqual(json.load(f), {"extensions": "pdf doc"})
        # A fresh manager over the same directory sees the same value
        self.assertEqual(SettingsManager(self.tmp).get_extensions(), ["pdf", "doc"])

    def test_update_with_nothing_valid_clears_option(self):
        self.manager.update_extensions("pdf")
        self.manager.update_extensions("  ")
        self.assertEqual(self.manager.get_option(), {})
        self.assertEqual(self.manager.get_extensions(), [])

    def test_listener_receives_old_and_new_values(self):
        calls = []
        self.manager.add_update_listener(lambda old, new: calls.append((old, new)))
        self.manager.update_extensions("pdf")
        self.manager.update_extensions("zip")
        self.assertEqual(calls, [
            ({}, {"extensions": "pdf"}),
            ({"extensions": "pdf"}, {"extensions": "zip"}),
        ])

    def test_seed_only_when_no_option_saved(self):
        self.assertTrue(self.manager.seed_extensions("PDF"))
        self.assertFalse(self.manager.seed_extensions("zip"))
        self.assertEqual(self.manager.get_extensions(), ["pdf"])

    def test_seed_none_is_ignored(self):
        self.assertFalse(self.manager.seed_extensions(None))
        self.assertFalse(self.manager.has_option())

    def test_invalid_json_is_treated_as_empty(self):
        with open(os.path.join(self.tmp, SETTINGS_FILENAME), "w", encoding="utf-8") as f:
            f.write("{not json")
        self.assertEqual(self.manager.get_extensions(), [])

    def test_version_changes_after_write(self):
        self.manager.update_extensions("pdf")
        self.assertIsNotNone(self.manager.version)

    def test_version_changes_when_mtime_is_restored(self):
        self.manager.update_extensions("pdf")
        first = self.manager.version
        self.manager.update_extensions("pdf zip")
        os.utime(self.manager.file_path, ns=(first[1], first[1]))
        self.assertNotEqual(self.manager.version, first)
