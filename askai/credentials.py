"""
Credential resolution.

  1) --key / ASKAI_KEY / settings file / keyring  -> used as-is
  2) hosted endpoint (models.github.ai)          -> ask the GitHub CLI: `gh auth token`
  3) anything else                               -> fail, we never guess a helper

When `gh auth token` gives nothing we probe `gh --version` so the error can
say whether gh is missing or just not logged in.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol, Sequence, Tuple

from .config import (
    HELPER_BINARY,
    HELPER_TIMEOUT_SECS,
    HELPER_TOKEN_ARGS,
    HELPER_VERSION_ARGS,
    HOSTED_HOST_FRAGMENT,
)
from .errors import CredentialError, OperationCancelledError, TransportError
from .utils import TRACE, mask_secret

logger = logging.getLogger(__name__)


class CredentialHelper(Protocol):
    async def is_available(self) -> bool: ...

    async def fetch_token(self) -> Optional[str]: ...


class GhCliHelper:
    """Credential helper backed by the `gh` executable. No shell is involved."""

    def __init__(self, binary: str = HELPER_BINARY, timeout: float = HELPER_TIMEOUT_SECS) -> None:
        self.binary = binary
        self.timeout = timeout

    async def _run(self, args: Sequence[str]) -> Tuple[int, str]:
        proc = await asyncio.create_subprocess_exec(
            self.binary,
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.CancelledError:
            await _reap(proc)
            raise OperationCancelledError() from None
        except asyncio.TimeoutError as e:
            await _reap(proc)
            raise TransportError(f"'{self.binary} {' '.join(args)}' timed out after {self.timeout}s") from e

        if stderr:
            logger.debug("%s %s stderr: %s", self.binary, " ".join(args), stderr.decode(errors="replace").strip())
        return proc.returncode, stdout.decode(errors="replace")

    async def is_available(self) -> bool:
        try:
            code, out = await self._run(HELPER_VERSION_ARGS)
        except OSError as e:
            logger.debug("%s not runnable: %s", self.binary, e)
            return False
        logger.debug("%s --version exited %s: %s", self.binary, code, out.strip().splitlines()[:1])
        return code == 0

    async def fetch_token(self) -> Optional[str]:
        try:
            code, out = await self._run(HELPER_TOKEN_ARGS)
        except FileNotFoundError:
            logger.debug("%s not found on PATH", self.binary)
            return None
        except OSError as e:
            raise TransportError(f"Could not run '{self.binary}': {e}") from e

        token = out.strip()
        if code != 0 or not token:
            logger.debug("%s auth token exited %s with %d bytes of output", self.binary, code, len(token))
            return None
        return token


async def _reap(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


def is_hosted_endpoint(url: str) -> bool:
    return HOSTED_HOST_FRAGMENT in (url or "").lower()


async def resolve_credential(
    url: str,
    key: Optional[str],
    helper: CredentialHelper,
    logger: logging.Logger = logger,
) -> str:
    """Return the bearer token to use for ``url``."""
    if key:
        logger.debug("Using explicitly configured key")
        logger.log(TRACE, "Key: %s", mask_secret(key))
        return key

    if not is_hosted_endpoint(url):
        raise CredentialError(
            "--key must be specified (or set via ASKAI_KEY environment variable).",
            CredentialError.NO_KEY,
            hint=f"Automatic token lookup only works for {HOSTED_HOST_FRAGMENT}.",
        )

    logger.debug("No key configured; asking %s for a token", HELPER_BINARY)
    token = await helper.fetch_token()
    if token:
        logger.debug("Token obtained from %s", HELPER_BINARY)
        logger.log(TRACE, "Token: %s", mask_secret(token))
        return token

    if await helper.is_available():
        raise CredentialError(
            f"No key specified and the GitHub CLI ('{HELPER_BINARY}') is not logged in.",
            CredentialError.HELPER_UNAUTHENTICATED,
            hint="Run 'gh auth login', or pass --key / set ASKAI_KEY.",
        )
    raise CredentialError(
        f"No key specified and the GitHub CLI ('{HELPER_BINARY}') is not installed.",
        CredentialError.HELPER_MISSING,
        hint="Install it from https://cli.github.com and run 'gh auth login', or pass --key / set ASKAI_KEY.",
    )
