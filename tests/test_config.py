"""Tests for config loading and saving."""

import json

from telesync.config.loader import camel_to_snake, load_config, save_config, snake_to_camel
from telesync.config.schema import Config, DonationLink


def test_key_conversion():
    assert camel_to_snake("allowFrom") == "allow_from"
    assert snake_to_camel("append_note_path") == "appendNotePath"


def test_save_uses_camel_case_and_round_trips(tmp_path):
    path = tmp_path / "config.json"
    config = Config()
    config.telegram.allow_from = ["alice"]
    config.vault.notes_location = "Inbox"
    config.release.donation_links = [DonationLink(text="Ko-fi", url="https://example.org")]

    save_config(config, path)
    raw = json.loads(path.read_text(encoding="utf-8"))
    loaded = load_config(path)

    assert raw["telegram"]["allowFrom"] == ["alice"]
    assert raw["vault"]["notesLocation"] == "Inbox"
    assert loaded.telegram.allow_from == ["alice"]
    assert loaded.vault.notes_location == "Inbox"
    assert loaded.release.donation_links[0].text == "Ko-fi"


def test_invalid_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")

    config = load_config(path)

    assert config.telegram.allow_from == []
    assert config.vault.append_note_path == "Telegram.md"


def test_files_folder_defaults_to_notes_location():
    config = Config()
    config.vault.notes_location = "Inbox"

    assert config.vault.files_folder == "Inbox"
    config.vault.files_location = "Attachments"
    assert config.vault.files_folder == "Attachments"
