"""Tests for the command registration CLI."""

from signups import register_commands


class TestMain:
    def test_requires_bot_token(self, monkeypatch, capsys):
        monkeypatch.setenv("DISCORD_BOT_TOKEN", "")
        assert register_commands.main([]) == 1
        assert "DISCORD_BOT_TOKEN" in capsys.readouterr().err

    def test_registers_for_guild(self, monkeypatch, capsys):
        monkeypatch.setenv("DISCORD_BOT_TOKEN", "bot-token")
        seen = {}

        async def fake_register(settings, guild_id=None):
            seen["token"] = settings.discord_bot_token
            seen["guild"] = guild_id
            return [{"name": "add"}, {"name": "list"}]

        monkeypatch.setattr(register_commands, "register", fake_register)

        assert register_commands.main(["--guild", "g1"]) == 0
        assert seen == {"token": "bot-token", "guild": "g1"}
        out = capsys.readouterr().out
        assert "Registered: /add" in out
        assert "2 guild g1 commands registered" in out

    def test_reports_api_errors(self, monkeypatch, capsys):
        monkeypatch.setenv("DISCORD_BOT_TOKEN", "bot-token")

        async def failing_register(settings, guild_id=None):
            raise ValueError("DISCORD_APPLICATION_ID is required to register commands.")

        monkeypatch.setattr(register_commands, "register", failing_register)

        assert register_commands.main([]) == 1
        assert "DISCORD_APPLICATION_ID" in capsys.readouterr().err
