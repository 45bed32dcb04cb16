import pytest

from arduino_lab.inference.config import VisionModel, load_api_key, resolve_vision_model
from arduino_lab.ir.errors import ApiKeyNotFoundError


def test_env_key_wins(monkeypatch, tmp_path):
    key_file = tmp_path / "api_key.txt"
    key_file.write_text("sk-from-file\n")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")

    assert load_api_key(str(key_file)) == "sk-from-env"


def test_key_read_from_secret_file(monkeypatch, tmp_path):
    key_file = tmp_path / "api_key.txt"
    key_file.write_text("  sk-from-file  \n")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    assert load_api_key(str(key_file)) == "sk-from-file"


@pytest.mark.parametrize("contents", [None, "", "   \n"])
def test_missing_key(monkeypatch, tmp_path, contents):
    key_file = tmp_path / "api_key.txt"
    if contents is not None:
        key_file.write_text(contents)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(ApiKeyNotFoundError):
        load_api_key(str(key_file))


def test_vision_model_aliases():
    assert resolve_vision_model("gpt-4o") == "chatgpt-4o-latest"
    assert resolve_vision_model(VisionModel.GPT_4_1_MINI.value) == "gpt-4.1-mini"
    assert resolve_vision_model("o4-mini") == "o4-mini"
