import asyncio
import json
import os
import signal
import sys

import aiohttp
import pytest

import askai.main as main_mod
import askai.settings as settings_mod
from askai.main import main


class DummyKeyring:
    @staticmethod
    def get_password(service, key):
        return None


class FakeHelper:
    token = None
    available = False

    async def fetch_token(self):
        return self.token

    async def is_available(self):
        return self.available


class DummyResp:
    def __init__(self, status, body, on_read=None):
        self.status = status
        self._body = body
        self._on_read = on_read
        self.closed = False

    async def text(self):
        if self._on_read is not None:
            await self._on_read()
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True


class DummySession:
    def __init__(self, resp):
        self.resp = resp
        self.posts = []
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True

    def post(self, url, **kwargs):
        self.posts.append((url, kwargs))
        return self.resp


@pytest.fixture
def env(monkeypatch, tmp_path):
    for name in list(os.environ):
        if name.startswith("ASKAI_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(settings_mod, "keyring", DummyKeyring)
    monkeypatch.setattr(main_mod, "GhCliHelper", FakeHelper)
    return tmp_path


def serve(monkeypatch, status=200, body=None, on_read=None):
    if body is None:
        body = json.dumps({"choices": [{"message": {"role": "assistant", "content": "4"}}]})
    session = DummySession(DummyResp(status, body, on_read))
    monkeypatch.setattr(aiohttp, "ClientSession", lambda *a, **k: session)
    return session


def test_minimal_prints_answer_only(env, monkeypatch, capsys):
    session = serve(monkeypatch)
    assert main(["--key", "k", "--verbosity", "minimal", "2+2?"]) == 0
    out, err = capsys.readouterr()
    assert out == "4\n"
    assert err == ""
    assert session.posts[0][0] == "https://models.github.ai/inference/chat/completions"


def test_normal_echoes_question(env, monkeypatch, capsys):
    serve(monkeypatch)
    assert main(["--key", "k", "--verbosity", "n", "2+2?"]) == 0
    out, _ = capsys.readouterr()
    assert out == "Q: 2+2?\n\nA: 4\n"


def test_settings_file_is_used(env, monkeypatch, capsys):
    (env / "askai.settings.json").write_text(json.dumps(
        {"AskAI": {"Url": "https://api.example.com/v1/", "Key": "file-key", "Model": "gpt-5"}}))
    session = serve(monkeypatch)

    assert main(["hello"]) == 0
    url, kwargs = session.posts[0]
    assert url == "https://api.example.com/v1/chat/completions"
    assert kwargs["json"]["model"] == "gpt-5"


def test_invalid_model_fails_before_network(env, monkeypatch, capsys):
    session = serve(monkeypatch)
    assert main(["--key", "k", "--model", "gpt-4", "hi"]) == 1
    out, err = capsys.readouterr()
    assert out == ""
    assert "Invalid model 'gpt-4'" in err
    assert session.posts == []


def test_custom_model_without_name(env, monkeypatch, capsys):
    serve(monkeypatch)
    assert main(["--key", "k", "--model", "custom", "hi"]) == 1
    assert "--custom-model must be specified" in capsys.readouterr().err


def test_custom_model_is_sent(env, monkeypatch, capsys):
    session = serve(monkeypatch)
    assert main(["--key", "k", "--model", "custom", "--custom-model", "phi-4", "hi"]) == 0
    assert session.posts[0][1]["json"]["model"] == "phi-4"


def test_missing_gh_reports_install_hint(env, monkeypatch, capsys):
    session = serve(monkeypatch)
    assert main(["hi"]) == 1
    err = capsys.readouterr().err
    assert "not installed" in err
    assert "https://cli.github.com" in err
    assert session.posts == []


def test_gh_token_used_for_hosted_endpoint(env, monkeypatch, capsys):
    monkeypatch.setattr(FakeHelper, "token", "gho_from_gh")
    serve(monkeypatch)
    seen = {}
    real_factory = aiohttp.ClientSession

    def factory(*args, **kwargs):
        seen.update(kwargs["headers"])
        return real_factory(*args, **kwargs)

    monkeypatch.setattr(aiohttp, "ClientSession", factory)
    assert main(["hi"]) == 0
    assert seen["Authorization"] == "Bearer gho_from_gh"


def test_unknown_endpoint_needs_key(env, monkeypatch, capsys):
    serve(monkeypatch)
    assert main(["--url", "https://api.example.com/v1", "hi"]) == 1
    assert "--key must be specified" in capsys.readouterr().err


def test_api_error_body_printed_verbatim(env, monkeypatch, capsys):
    serve(monkeypatch, status=401, body='{"error":"invalid token"}')
    assert main(["--key", "bad", "hi"]) == 1
    out, err = capsys.readouterr()
    assert out == ""
    assert err == '{"error":"invalid token"}\n'


def test_empty_response(env, monkeypatch, capsys):
    serve(monkeypatch, body=json.dumps({"choices": []}))
    assert main(["--key", "k", "hi"]) == 1
    out, err = capsys.readouterr()
    assert out == ""
    assert "No content in response" in err


def test_empty_prompt(env, monkeypatch, capsys):
    serve(monkeypatch)
    assert main(["--key", "k", "   "]) == 1
    assert "prompt cannot be empty" in capsys.readouterr().err


def test_diagnostic_traces_go_to_stderr(env, monkeypatch, capsys):
    serve(monkeypatch)
    assert main(["--key", "sk-secret-value-123", "-v", "2+2?"]) == 0
    out, err = capsys.readouterr()
    assert out == "Q: 2+2?\n\nA: 4\n"
    assert "Request body" in err
    assert "Response body" in err
    assert "HTTP 200" in err
    assert "sk-secret-value-123" not in err


def test_detailed_has_debug_but_no_trace(env, monkeypatch, capsys):
    serve(monkeypatch)
    assert main(["--key", "k", "--verbosity", "detailed", "hi"]) == 0
    err = capsys.readouterr().err
    assert "POST https://models.github.ai/inference/chat/completions" in err
    assert "Request body" not in err


@pytest.mark.skipif(sys.platform == "win32", reason="loop signal handlers need POSIX")
def test_interrupt_cancels_request(env, monkeypatch, capsys):
    async def interrupt_and_hang():
        os.kill(os.getpid(), signal.SIGINT)
        await asyncio.Event().wait()

    session = serve(monkeypatch, on_read=interrupt_and_hang)
    assert main(["--key", "k", "hi"]) == 1
    out, err = capsys.readouterr()
    assert out == ""
    assert "Operation cancelled" in err
    assert session.resp.closed
    assert session.closed


def test_keyboard_interrupt_outside_loop_is_cancellation(env, monkeypatch, capsys):
    def interrupted_run(coro):
        coro.close()
        raise KeyboardInterrupt

    monkeypatch.setattr(main_mod.asyncio, "run", interrupted_run)
    assert main(["--key", "k", "hi"]) == 1
    out, err = capsys.readouterr()
    assert out == ""
    assert "Operation cancelled" in err


class BrokenKeyring:
    @staticmethod
    def get_password(service, key):
        raise RuntimeError("No recommended backend was available")


def test_keyring_failure_logged_at_detailed(env, monkeypatch, capsys):
    monkeypatch.setattr(settings_mod, "keyring", BrokenKeyring)
    serve(monkeypatch)
    assert main(["--url", "https://api.example.com/v1", "--verbosity", "detailed", "hi"]) == 1
    err = capsys.readouterr().err
    assert "Keyring read failed: No recommended backend was available" in err
    assert "--key must be specified" in err


def test_keyring_failure_silent_at_minimal(env, monkeypatch, capsys):
    monkeypatch.setattr(settings_mod, "keyring", BrokenKeyring)
    serve(monkeypatch)
    assert main(["--url", "https://api.example.com/v1", "hi"]) == 1
    assert "Keyring read failed" not in capsys.readouterr().err
