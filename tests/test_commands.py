"""
Tests for Telegram update parsing and command dispatch.
"""

import logging

import pytest

from health_agent import counters
from health_agent.telegram import commands
from health_agent.telegram.commands import (
    HELP_TEXT,
    NO_DATA_TEXT,
    NOT_A_COMMAND_TEXT,
    UNKNOWN_COMMAND_TEXT,
    handle_command,
    parse_update,
)


class TestParseUpdate:
    """Tests for parse_update()."""

    def test_parse_message(self):
        body = {
            "update_id": 1,
            "message": {
                "text": "/log_water 250",
                "from": {"id": 111, "first_name": "Sam"},
                "chat": {"id": 222},
            },
        }

        incoming = parse_update(body)

        assert incoming.user_id == 111
        assert incoming.chat_id == 222
        assert incoming.text == "/log_water 250"

    def test_parse_edited_message(self):
        body = {"edited_message": {"text": "/steps 10", "from": {"id": 1}, "chat": {"id": 1}}}

        assert parse_update(body).text == "/steps 10"

    @pytest.mark.parametrize("body", [
        {},
        {"message": {}},
        {"message": {"text": "   ", "from": {"id": 1}, "chat": {"id": 1}}},
        {"message": {"text": "/progress", "chat": {"id": 1}}},
        {"message": {"photo": [{"file_id": "x"}], "from": {"id": 1}, "chat": {"id": 1}}},
    ])
    def test_ignored_updates(self, body):
        assert parse_update(body) is None


class TestHandleCommand:
    """Tests for handle_command() routing and replies."""

    def test_start_registers_user(self, db):
        reply = handle_command(db, 10, "/start")

        assert "/help" in reply
        assert counters.get_progress(db, 10) is not None

    def test_help(self, db):
        reply = handle_command(db, 10, "/help")

        assert reply == HELP_TEXT
        for command in ["/log_water", "/steps", "/weight", "/progress"]:
            assert command in reply

    def test_log_water(self, db):
        handle_command(db, 10, "/log_water 250")
        reply = handle_command(db, 10, "/log_water 500")

        assert reply == "Added 500 ml of water (total today: 750 ml)."
        assert counters.get_progress(db, 10).water == 750

    def test_log_water_ignores_trailing_words(self, db):
        reply = handle_command(db, 10, "/log_water 300 ml")

        assert reply.startswith("Added 300 ml")

    @pytest.mark.parametrize("text", [" /help", "\n/help", "/help  "])
    def test_surrounding_whitespace_ignored(self, db, text):
        assert handle_command(db, 10, text) == HELP_TEXT

    def test_leading_space_before_argument_command(self, db):
        reply = handle_command(db, 10, "  /log_water 250")

        assert reply.startswith("Added 250 ml")

    def test_command_with_bot_suffix(self, db):
        reply = handle_command(db, 10, "/log_water@health_tracker_bot 100")

        assert reply.startswith("Added 100 ml")

    @pytest.mark.parametrize("text", ["/log_water abc", "/log_water -5"])
    def test_log_water_rejected(self, db, text):
        handle_command(db, 10, "/log_water 100")

        reply = handle_command(db, 10, text)

        assert "Water amount" in reply
        assert counters.get_progress(db, 10).water == 100

    def test_log_water_usage(self, db):
        reply = handle_command(db, 10, "/log_water")

        assert reply.startswith("Usage: /log_water")
        assert counters.get_progress(db, 10) is None

    def test_steps(self, db):
        assert handle_command(db, 10, "/steps 8000") == "Steps updated: 8000"
        assert handle_command(db, 10, "/steps 9000") == "Steps updated: 9000"
        assert counters.get_progress(db, 10).steps == 9000

    def test_steps_rejected(self, db):
        reply = handle_command(db, 10, "/steps lots")

        assert "Step count" in reply

    def test_weight(self, db):
        assert handle_command(db, 10, "/weight 72.5") == "Weight updated: 72.5 kg"
        assert handle_command(db, 10, "/weight 80") == "Weight updated: 80 kg"

    def test_weight_rejected(self, db):
        reply = handle_command(db, 10, "/weight NaN")

        assert "finite" in reply
        assert counters.get_progress(db, 10) is None

    def test_progress_no_data(self, db):
        assert handle_command(db, 10, "/progress") == NO_DATA_TEXT

    def test_progress_weight_not_set(self, db):
        handle_command(db, 10, "/start")

        reply = handle_command(db, 10, "/progress")

        assert "Weight: not set" in reply
        assert "Water: 0 ml" in reply
        assert "Steps: 0" in reply

    def test_progress_full(self, db):
        handle_command(db, 10, "/log_water 1200")
        handle_command(db, 10, "/steps 6400")
        handle_command(db, 10, "/weight 68.2")

        reply = handle_command(db, 10, "/progress")

        assert reply.startswith("Progress:")
        assert "Weight: 68.2 kg" in reply
        assert "Water: 1200 ml" in reply
        assert "Steps: 6400" in reply

    def test_progress_is_per_user(self, db):
        handle_command(db, 10, "/log_water 1200")

        assert handle_command(db, 11, "/progress") == NO_DATA_TEXT

    def test_unknown_command(self, db):
        assert handle_command(db, 10, "/dance") == UNKNOWN_COMMAND_TEXT

    def test_plain_text(self, db):
        assert handle_command(db, 10, "drank some water") == NOT_A_COMMAND_TEXT

    def test_empty_text(self, db):
        assert handle_command(db, 10, "  ") is None


class TestStorageFailures:
    """Storage errors become a generic notice and are logged with context."""

    def test_add_water_storage_error(self, db, monkeypatch, storage_error, caplog):
        def broken(db, user_id, amount):
            raise storage_error("database is locked")

        monkeypatch.setattr(commands.counters, "add_water", broken)

        with caplog.at_level(logging.ERROR, logger="health_agent"):
            reply = handle_command(db, 10, "/log_water 250")

        assert reply == "Sorry, I couldn't save your water. Please try again later."
        assert "/log_water" in caplog.text
        assert "user 10" in caplog.text

    def test_progress_storage_error(self, db, monkeypatch, storage_error):
        def broken(db, user_id):
            raise storage_error()

        monkeypatch.setattr(commands.counters, "get_progress", broken)

        reply = handle_command(db, 10, "/progress")

        assert reply.startswith("Sorry, I couldn't load your progress")
