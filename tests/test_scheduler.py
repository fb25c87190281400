from apscheduler.triggers.cron import CronTrigger

from settleup.config import Settings
from settleup.scheduler import SETTLE_REMINDERS_JOB_ID, setup_scheduler


def test_daily_job_is_registered(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "123:abc")
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/settleup")
    monkeypatch.setenv("TZ", "America/New_York")
    monkeypatch.delenv("REMINDER_HOUR", raising=False)
    monkeypatch.delenv("REMINDER_MINUTE", raising=False)
    settings = Settings(_env_file=None)  # type: ignore[call-arg]

    scheduler = setup_scheduler(settings, reminders=object())  # type: ignore[arg-type]

    job = scheduler.get_job(SETTLE_REMINDERS_JOB_ID)
    assert job is not None
    assert isinstance(job.trigger, CronTrigger)
    fields = {field.name: str(field) for field in job.trigger.fields}
    assert fields["hour"] == "18"
    assert fields["minute"] == "0"
