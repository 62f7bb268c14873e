"""
askai configuration (GitHub Models edition)

These are fixed values. Anything a user may override (url, key, model,
custom model, verbosity) is resolved in settings.py.
"""

from . import __version__

# === Hosted inference endpoint (no trailing /chat/completions !) ===
DEFAULT_URL = "https://models.github.ai/inference"

# Substring that marks the hosted endpoint; only there do we ask `gh` for a token.
HOSTED_HOST_FRAGMENT = "models.github.ai"

APP_TITLE = "askai"

# Model allow-list. "custom" means: use whatever --custom-model says.
ALLOWED_MODELS = ("gpt-5.2", "gpt-5.2-pro", "gpt-5.1", "gpt-5", "gpt-5-mini", "gpt-5-nano")
CUSTOM_MODEL = "custom"
DEFAULT_MODEL = "gpt-5-mini"

# Environment variables: ASKAI_URL, ASKAI_KEY, ASKAI_MODEL, ASKAI_CUSTOMMODEL, ASKAI_VERBOSITY
ENV_PREFIX = "ASKAI_"

# Optional JSON settings file, looked up in the working directory.
SETTINGS_FILE = "askai.settings.json"
SETTINGS_SECTION = "AskAI"

# Keyring identifiers for the per-user secret layer
# (set with: keyring set askai key)
KEYRING_SERVICE = "askai"
KEYRING_KEY = "key"

# GitHub CLI acts as the credential helper for the hosted endpoint.
HELPER_BINARY = "gh"
HELPER_TOKEN_ARGS = ("auth", "token")
HELPER_VERSION_ARGS = ("--version",)
HELPER_TIMEOUT_SECS = 30

HTTP_TIMEOUT_SECS = 100
USER_AGENT = f"{APP_TITLE}/{__version__}"
