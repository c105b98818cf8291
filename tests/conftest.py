import pytest

from econ_shorts import credentials


@pytest.fixture(autouse=True)
def settings_path(tmp_path, monkeypatch):
    # Keep the credential store out of the real user directory
    path = tmp_path / "settings" / "settings.json"
    monkeypatch.setattr(credentials, "default_settings_path", lambda: path)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setattr("econ_shorts.cli.load_dotenv", lambda: None)
    return path
