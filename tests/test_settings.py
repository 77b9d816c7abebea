from korganizify.settings import Settings


def test_defaults():
    settings = Settings()
    assert settings.color == "#A5A9A0"
    assert settings.notifications is False


def test_to_json():
    assert Settings("#9EAEF8", True).to_json() == {"color": "#9EAEF8", "notifications": True}


def test_round_trip():
    original = Settings("#ABD49A", True)
    loaded = Settings()
    loaded.load_json({"settings": original.to_json()})
    assert (loaded.color, loaded.notifications) == ("#ABD49A", True)


def test_missing_section_clears_values():
    settings = Settings("#ABD49A", True)
    settings.load_json({})
    assert settings.color == ""
    assert settings.notifications is False