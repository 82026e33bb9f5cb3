# test/test_config.py

import config


def test_settings_obj_mirrors_module_values():
    settings = config.get_settings_obj()
    assert settings.WAITLIST_BACKEND == config.WAITLIST_BACKEND
    assert settings.PRODUCT_NAME == config.PRODUCT_NAME
    assert isinstance(settings.FORM_ERROR_RESET_SECONDS, float)


def test_get_float_falls_back_on_garbage(monkeypatch):
    monkeypatch.setenv("SOME_SECONDS", "soon")
    assert config._get_float("SOME_SECONDS", 2.0) == 2.0
    monkeypatch.setenv("SOME_SECONDS", "1.5")
    assert config._get_float("SOME_SECONDS", 2.0) == 1.5
