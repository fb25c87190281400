from zoneinfo import ZoneInfo

from settleup.config import Settings


def test_settings_defaults(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "123:abc")
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/settleup")
    for name in ("TZ", "REMINDER_HOUR", "REMINDER_MINUTE", "DEBT_THRESHOLD_CENTS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)  # type: ignore[call-arg]

    assert settings.zoneinfo == ZoneInfo("America/New_York")
    assert (settings.reminder_hour, settings.reminder_minute) == (18, 0)
    assert settings.debt_threshold_cents == 100


def test_settings_override(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "123:abc")
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/settleup")
    monkeypatch.setenv("REMINDER_HOUR", "9")
    monkeypatch.setenv("DEBT_THRESHOLD_CENTS", "500")

    settings = Settings(_env_file=None)  # type: ignore[call-arg]

    assert settings.reminder_hour == 9
    assert settings.debt_threshold_cents == 500
