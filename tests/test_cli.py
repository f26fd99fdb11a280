import pytest

from coldapply import cli
from coldapply.config import Settings, get_settings

REQUIRED_ENV = ("GROQ_API_KEY", "SMTP_HOST", "SMTP_USER", "SMTP_PASS")


class StubMailer:
    def __init__(self, error=None):
        self.error = error
        self.verified = False

    def verify(self):
        if self.error:
            raise self.error
        self.verified = True

    async def send(self, recipients, subject, body):
        pass


def _settings(tmp_path, **overrides):
    values = dict(
        groq_api_key="gsk_test",
        smtp_host="smtp.example.com",
        smtp_user="me@example.com",
        smtp_pass="secret",
        resume_path=str(tmp_path / "resume.pdf"),
        data_dir=str(tmp_path / "data"),
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in REQUIRED_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_missing_configuration_is_a_setup_error(clean_env):
    with pytest.raises(cli.SetupError) as exc:
        cli.load_settings()
    assert "GROQ_API_KEY" in str(exc.value)
    assert "SMTP_PASS" in str(exc.value)


def test_main_exits_1_without_configuration(clean_env):
    with pytest.raises(SystemExit) as exc:
        cli.main([])
    assert exc.value.code == 1


def test_verify_setup_requires_resume(tmp_path, store):
    with pytest.raises(cli.SetupError, match="Resume file not found"):
        cli.verify_setup(_settings(tmp_path), store, StubMailer())


def test_verify_setup_fails_on_smtp_error(tmp_path, store):
    (tmp_path / "resume.pdf").write_bytes(b"%PDF")
    with pytest.raises(cli.SetupError, match="SMTP connection failed"):
        cli.verify_setup(_settings(tmp_path), store, StubMailer(error=OSError("refused")))
    assert not store.history_path.exists()


def test_verify_setup_initialises_store(tmp_path, store):
    (tmp_path / "resume.pdf").write_bytes(b"%PDF")
    mailer = StubMailer()
    cli.verify_setup(_settings(tmp_path), store, mailer)
    assert mailer.verified
    assert store.history_path.exists()
    assert store.queue_path.exists()


def test_build_runner_wires_settings(tmp_path, store):
    settings = _settings(tmp_path, max_emails_per_run=5, email_interval_seconds=60, max_send_attempts=3)
    runner = cli.build_runner(settings, store, StubMailer())
    assert runner.processor.max_per_run == 5
    assert runner.processor.interval_seconds == 60
    assert runner.processor.max_attempts == 3
