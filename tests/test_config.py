import pytest

from cmdrelay.config import Settings
from cmdrelay.errors import ReplySpecError


def test_reply_spec_from_environment(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CMDRELAY_COMMAND", '["claude", "{{Body}}"]')
    monkeypatch.setenv("CMDRELAY_OUTPUT_FORMAT", "json")
    monkeypatch.setenv("CMDRELAY_SESSION_RESUME_ARGS", '["--resume", "{{SessionId}}"]')
    monkeypatch.setenv("CMDRELAY_MEDIA_MAX_MB", "5")
    monkeypatch.setenv("CMDRELAY_TIMEOUT_SECONDS", "30")

    settings = Settings()
    spec = settings.reply_spec()

    assert spec.command == ["claude", "{{Body}}"]
    assert spec.is_structured is True
    assert spec.session is not None
    assert spec.session.resume == ["--resume", "{{SessionId}}"]
    assert spec.session.new is None
    assert spec.media_max_mb == 5
    assert settings.timeout_ms == 30_000


def test_reply_spec_reads_dotenv(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("CMDRELAY_COMMAND='[\"echo\", \"{{Body}}\"]'\nCMDRELAY_IDENTITY_PREFIX=\n")

    spec = Settings().reply_spec()

    assert spec.command == ["echo", "{{Body}}"]
    assert spec.session is None
    assert spec.identity_prefix is False


def test_missing_command_is_a_configuration_error(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CMDRELAY_COMMAND", raising=False)

    with pytest.raises(ReplySpecError):
        Settings().reply_spec()
