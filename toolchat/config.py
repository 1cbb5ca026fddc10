"""
Central configuration for toolchat.
Loads environment variables from a .env file at import time.
"""
from __future__ import annotations

import os
import shlex
import sys
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from toolchat.exceptions import ConfigError

# --- Load .env early so everything importing config sees the vars ---
# This looks for a .env in the current working dir or parents.
load_dotenv()

#: Environment variable names
GROQ_API_KEY_ENV = "GROQ_API_KEY"
GROQ_MODEL_ENV = "GROQ_MODEL"
TEMPERATURE_ENV = "TOOLCHAT_TEMPERATURE"
MAX_TOKENS_ENV = "TOOLCHAT_MAX_TOKENS"
MAX_HISTORY_ENV = "TOOLCHAT_MAX_HISTORY"
MAX_ROUNDS_ENV = "TOOLCHAT_MAX_ROUNDS"
TOOLS_ENABLED_ENV = "TOOLCHAT_TOOLS_ENABLED"
TOOL_MODE_ENV = "TOOLCHAT_TOOL_MODE"
WORKER_COMMAND_ENV = "TOOLCHAT_WORKER_COMMAND"
NATIVE_TOOLS_ENV = "TOOLCHAT_NATIVE_TOOLS"
SYSTEM_PROMPT_ENV = "TOOLCHAT_SYSTEM_PROMPT"
MODEL_TIMEOUT_ENV = "TOOLCHAT_MODEL_TIMEOUT"

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."
DEFAULT_MAX_HISTORY = 20
DEFAULT_MAX_ROUNDS = 3
DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 1024
DEFAULT_MODEL_TIMEOUT = 60.0

TOOL_MODES = ("local", "stdio")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def require_env(var_name: str) -> str:
    """
    Return the value of an environment variable or raise a clear error.

    Raises
    ------
    ConfigError
        If the environment variable is missing or empty.
    """
    try:
        value = os.environ[var_name]
    except KeyError as exc:
        raise ConfigError(f"Required environment variable '{var_name}' is not set.") from exc
    if not value:
        raise ConfigError(f"Environment variable '{var_name}' is empty.")
    return value


def get_groq_api_key() -> str:
    """
    Convenience accessor specifically for the Groq API key.
    """
    return require_env(GROQ_API_KEY_ENV)


def default_worker_command() -> List[str]:
    """Run the bundled worker with the current interpreter."""
    return [sys.executable, "-m", "toolchat.worker"]


def _env_int(var_name: str, default: int) -> int:
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"Environment variable '{var_name}' must be an integer, got {raw!r}.") from exc


def _env_float(var_name: str, default: float) -> float:
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"Environment variable '{var_name}' must be a number, got {raw!r}.") from exc


def _env_bool(var_name: str, default: bool) -> bool:
    raw = os.environ.get(var_name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ConfigError(f"Environment variable '{var_name}' must be a boolean, got {raw!r}.")


@dataclass(slots=True)
class Settings:
    """Runtime knobs for the agent, the model client and the tool clients."""

    model_name: Optional[str] = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    model_timeout: float = DEFAULT_MODEL_TIMEOUT
    max_history: int = DEFAULT_MAX_HISTORY
    max_rounds: int = DEFAULT_MAX_ROUNDS
    tools_enabled: bool = True
    tool_mode: str = "local"
    worker_command: List[str] = field(default_factory=default_worker_command)
    native_tools: bool = True
    system_prompt: str = DEFAULT_SYSTEM_PROMPT


def load_settings() -> Settings:
    """
    Build `Settings` from the process environment.

    Non-positive history and round limits fall back to their defaults.

    Raises
    ------
    ConfigError
        If a value is present but malformed.
    """
    max_history = _env_int(MAX_HISTORY_ENV, DEFAULT_MAX_HISTORY)
    max_rounds = _env_int(MAX_ROUNDS_ENV, DEFAULT_MAX_ROUNDS)

    tool_mode = os.environ.get(TOOL_MODE_ENV, "").strip().lower() or "local"
    if tool_mode not in TOOL_MODES:
        raise ConfigError(
            f"Environment variable '{TOOL_MODE_ENV}' must be one of {', '.join(TOOL_MODES)}, got {tool_mode!r}."
        )

    raw_command = os.environ.get(WORKER_COMMAND_ENV, "").strip()
    worker_command = shlex.split(raw_command) if raw_command else default_worker_command()

    return Settings(
        model_name=os.environ.get(GROQ_MODEL_ENV) or None,
        temperature=_env_float(TEMPERATURE_ENV, DEFAULT_TEMPERATURE),
        max_tokens=_env_int(MAX_TOKENS_ENV, DEFAULT_MAX_TOKENS),
        model_timeout=_env_float(MODEL_TIMEOUT_ENV, DEFAULT_MODEL_TIMEOUT),
        max_history=max_history if max_history > 0 else DEFAULT_MAX_HISTORY,
        max_rounds=max_rounds if max_rounds > 0 else DEFAULT_MAX_ROUNDS,
        tools_enabled=_env_bool(TOOLS_ENABLED_ENV, True),
        tool_mode=tool_mode,
        worker_command=worker_command,
        native_tools=_env_bool(NATIVE_TOOLS_ENV, True),
        system_prompt=os.environ.get(SYSTEM_PROMPT_ENV) or DEFAULT_SYSTEM_PROMPT,
    )
