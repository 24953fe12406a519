from primesite.config import get_settings, refresh_settings


def test_settings_are_cached_until_refreshed(monkeypatch) -> None:
    monkeypatch.setenv("PUBLISH_COUNTDOWN_TICKS", "7")
    first = refresh_settings()

    monkeypatch.setenv("PUBLISH_COUNTDOWN_TICKS", "9")

    assert get_settings() is first
    assert get_settings().publish_countdown_ticks == 7
    assert refresh_settings().publish_countdown_ticks == 9
    assert get_settings().publish_countdown_ticks == 9


def test_invalid_numbers_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("REPUBLISH_COUNTDOWN_TICKS", "soon")

    assert refresh_settings().republish_countdown_ticks == 3
