"""Tests for per-command option validation."""

import pytest

from signups.models.commands import (
    AddArgs,
    Caller,
    CommandArgumentError,
    EmptyArgs,
    RemoveArgs,
    TitleArgs,
    UnknownCommand,
    parse_command,
)

CALLER = Caller(id="111", name="alice")


def parse(name, options):
    return parse_command(name, "c1", CALLER, options, guild_id="g1")


class TestParseCommand:
    def test_add_with_all_options(self):
        command = parse("add", {"hour": 14, "day": 3, "name": "Foo"})
        assert isinstance(command.args, AddArgs)
        assert (command.args.hour, command.args.day, command.args.name) == (14, 3, "Foo")
        assert command.channel == "c1"
        assert command.guild_id == "g1"

    def test_add_optional_options_default_to_none(self):
        command = parse("add", {"hour": 9})
        assert command.args.day is None
        assert command.args.name is None

    def test_remove_without_options(self):
        command = parse("remove", {})
        assert isinstance(command.args, RemoveArgs)
        assert command.args.hour is None

    def test_title_commands(self):
        assert isinstance(parse("settitle", {"title": "Raid night"}).args, TitleArgs)
        assert parse("config", {"title": "  Raid night "}).args.title == "Raid night"

    @pytest.mark.parametrize("name", ["list", "next", "clear"])
    def test_commands_without_options(self, name):
        assert isinstance(parse(name, {}).args, EmptyArgs)

    def test_out_of_range_hour_is_left_to_the_resolver(self):
        assert parse("add", {"hour": 99}).args.hour == 99


class TestRejections:
    def test_unknown_command(self):
        with pytest.raises(UnknownCommand):
            parse("dance", {})

    def test_missing_hour(self):
        with pytest.raises(CommandArgumentError) as exc_info:
            parse("add", {"day": 3})
        assert exc_info.value.field == "hour"

    def test_string_hour_rejected(self):
        with pytest.raises(CommandArgumentError) as exc_info:
            parse("add", {"hour": "10"})
        assert exc_info.value.field == "hour"

    def test_bool_hour_rejected(self):
        with pytest.raises(CommandArgumentError):
            parse("add", {"hour": True})

    def test_unknown_option(self):
        with pytest.raises(CommandArgumentError) as exc_info:
            parse("list", {"bogus": 1})
        assert exc_info.value.field == "bogus"

    def test_blank_name(self):
        with pytest.raises(CommandArgumentError) as exc_info:
            parse("remove", {"name": "   "})
        assert exc_info.value.field == "name"

    def test_missing_title(self):
        with pytest.raises(CommandArgumentError) as exc_info:
            parse("settitle", {})
        assert exc_info.value.field == "title"
