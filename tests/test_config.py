from loopgen.config import DEFAULT_INPUT, get_api_token, load_config


def test_missing_config_is_empty(tmp_path):
    assert load_config(str(tmp_path / "nope.yaml")) == {}


def test_load_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("api_token: abc\npoll_interval: 2\ninput:\n  duration: 8\n", encoding="utf-8")

    cfg = load_config(str(path))

    assert cfg["api_token"] == "abc"
    assert cfg["poll_interval"] == 2
    assert cfg["input"]["duration"] == 8


def test_empty_yaml_is_empty(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(str(path)) == {}


def test_env_token_takes_precedence(monkeypatch):
    monkeypatch.setenv("REPLICATE_API_TOKEN", " r8_env ")
    assert get_api_token({"api_token": "from-file"}) == "r8_env"


def test_token_falls_back_to_config(monkeypatch):
    monkeypatch.delenv("REPLICATE_API_TOKEN", raising=False)
    assert get_api_token({"api_token": "from-file"}) == "from-file"
    assert get_api_token({}) == ""


def test_default_input_matches_musicgen_parameters():
    assert DEFAULT_INPUT["model_version"] == "stereo-large"
    assert DEFAULT_INPUT["classifier_free_guidance"] == 3
