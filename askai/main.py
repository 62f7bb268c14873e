"""
Entry point.
Dev:  python -m askai.main "What is 2+2?"
Installed:  askai --model gpt-5 "What is 2+2?"
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from typing import Mapping, Optional, Sequence, TextIO

from .api_client import ChatClient
from .config import DEFAULT_MODEL, DEFAULT_URL
from .credentials import CredentialHelper, GhCliHelper, resolve_credential
from .errors import AskAIError, ConfigurationError, OperationCancelledError, format_error
from .models import VALID_MODELS, select_model
from .output import render_answer
from .settings import load_settings
from .utils import setup_logging


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="askai",
        description="A command-line tool that sends a user-provided prompt to an OpenAI endpoint and prints the API response.",
    )
    ap.add_argument("prompt", help="The prompt to send to the OpenAI API")
    ap.add_argument("--url", help=f"The OpenAI endpoint URL (default: {DEFAULT_URL})")
    ap.add_argument("--key", help="The authentication token")
    ap.add_argument("--model", help=f"The model to use: {', '.join(VALID_MODELS)} (default: {DEFAULT_MODEL})")
    ap.add_argument("--custom-model", dest="custom_model",
                    help="The custom model name (required when --model is 'custom')")
    ap.add_argument("--verbosity", help="minimal|normal|detailed|diagnostic (or m, n, d, diag)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Shorthand for --verbosity diagnostic")
    return ap


async def run(
    args: argparse.Namespace,
    stdout: TextIO,
    stderr: TextIO,
    environ: Optional[Mapping[str, str]] = None,
    helper: Optional[CredentialHelper] = None,
) -> None:
    """Resolve settings, validate, get a token, send the prompt, print the answer."""
    prompt = args.prompt
    if not prompt or not prompt.strip():
        raise ConfigurationError("The prompt cannot be empty.")

    settings = load_settings(vars(args), environ=environ)
    log = setup_logging(settings.verbosity, stderr)
    log.debug("Settings: url=%s model=%s custom_model=%s verbosity=%s",
              settings.url, settings.model, settings.custom_model, settings.verbosity.name.lower())
    for note in settings.notes:
        log.debug("%s", note)

    model = select_model(settings.model, settings.custom_model)
    token = await resolve_credential(settings.url, settings.key, helper or GhCliHelper(), logger=log)

    client = ChatClient(settings.url, token, logger=log)
    answer = await client.send_query(model, prompt)
    render_answer(prompt, answer, settings.verbosity, stdout)


async def _run_cancellable(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> None:
    # Ctrl+C cancels this task; every await inside turns that into OperationCancelledError.
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    installed = False
    try:
        loop.add_signal_handler(signal.SIGINT, task.cancel)
        installed = True
    except (NotImplementedError, RuntimeError):
        # No loop signal support here (Windows). On 3.11+ asyncio.run cancels the task on
        # Ctrl+C; older versions raise KeyboardInterrupt, which main() handles.
        installed = False

    try:
        await run(args, stdout, stderr)
    except asyncio.CancelledError:
        raise OperationCancelledError() from None
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(_run_cancellable(args, sys.stdout, sys.stderr))
    except AskAIError as exc:
        print(format_error(exc), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        # Python < 3.11 without loop signal handlers: Ctrl+C escapes asyncio.run.
        print(format_error(OperationCancelledError()), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
