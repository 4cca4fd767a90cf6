"""Typed configuration loading.

Configuration comes from an optional TOML file overlaid with environment
variables (environment wins). The CLI loads a ``.env`` file into the process
environment before calling :func:`load_config`, so a typical setup is just::

    GITLAB_API_TOKEN=glpat-...
    GITLAB_PROJECTS=group/app, group/lib
    GITLAB_BASE_URL=https://gitlab.example.com

or, as TOML::

    [gitlab]
    api_token = "glpat-..."
    base_url = "https://gitlab.example.com"
    projects = ["group/app", "group/lib"]

    [poller]
    interval_seconds = 300
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_list, get_number, get_str, get_table

__all__ = [
    "MonitorConfig",
    "ConfigError",
    "load_config",
    "parse_projects",
    "DEFAULT_BASE_URL",
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_STARTUP_DELAY",
    "DEFAULT_HTTP_TIMEOUT",
    "DEFAULT_MAX_WORKERS",
]

DEFAULT_BASE_URL = "https://gitlab.com"
DEFAULT_POLL_INTERVAL = 300.0
DEFAULT_STARTUP_DELAY = 1.0
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_MAX_WORKERS = 4

ENV_TOKEN = "GITLAB_API_TOKEN"
ENV_BASE_URL = "GITLAB_BASE_URL"
ENV_PROJECTS = "GITLAB_PROJECTS"
ENV_POLL_INTERVAL = "RELMON_POLL_INTERVAL"
ENV_STARTUP_DELAY = "RELMON_STARTUP_DELAY"
ENV_HTTP_TIMEOUT = "RELMON_HTTP_TIMEOUT"
ENV_MAX_WORKERS = "RELMON_MAX_WORKERS"

_SETUP_HINT = (
    f"Create a .env file (or export variables) with {ENV_TOKEN} and {ENV_PROJECTS}, "
    f"e.g. {ENV_PROJECTS}=group/app,group/lib"
)


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Configuration cannot be used.

    Attributes:
        message: What is wrong
        hint: How to fix it
        path: Config file involved, if any
    """

    message: str
    hint: str | None = None
    path: Path | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class MonitorConfig:
    """Everything the synchronization engine needs to run.

    Attributes:
        api_token: Sent as PRIVATE-TOKEN on every API call
        base_url: GitLab instance root, without trailing slash
        projects: Project paths ("namespace/project"), in configured order
        poll_interval: Seconds between scheduled cycles
        startup_delay: Seconds to wait before the initial cycle
        http_timeout: Per-request timeout in seconds
        max_workers: Upper bound on concurrent project fetches
    """

    api_token: str = field(repr=False)
    projects: tuple[str, ...]
    base_url: str = DEFAULT_BASE_URL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    startup_delay: float = DEFAULT_STARTUP_DELAY
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS


def parse_projects(raw: str) -> tuple[str, ...]:
    """Split a comma-separated project list, trimming and dropping blanks."""
    return tuple(p.strip() for p in raw.split(",") if p.strip())


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def _projects_from_table(gitlab: StrDict) -> tuple[str, ...] | None:
    items = get_list(gitlab, "projects")
    if items is not None:
        return tuple(p.strip() for p in items if isinstance(p, str) and p.strip())
    raw = get_str(gitlab, "projects")
    if raw is not None:
        return parse_projects(raw)
    return None


def _number_setting(
    env: Mapping[str, str],
    env_key: str,
    table: StrDict,
    table_key: str,
    default: float,
    *,
    allow_zero: bool = False,
) -> Result[float, ConfigError]:
    raw_env = env.get(env_key, "").strip()
    if raw_env:
        try:
            value = float(raw_env)
        except ValueError:
            return Err(ConfigError(f"{env_key} must be a number, got {raw_env!r}"))
    else:
        from_table = get_number(table, table_key)
        value = default if from_table is None else from_table

    if value < 0 or (value == 0 and not allow_zero):
        bound = "zero or positive" if allow_zero else "positive"
        return Err(ConfigError(f"{env_key} / {table_key} must be {bound}, got {value:g}"))
    return Ok(value)


def load_config(
    env: Mapping[str, str],
    *,
    path: Path | None = None,
) -> Result[MonitorConfig, ConfigError]:
    """Build a MonitorConfig from environment variables and an optional TOML file.

    Args:
        env: Environment mapping (usually ``os.environ``)
        path: Optional TOML config file; a missing file is an error when given

    Returns:
        Ok(MonitorConfig), or Err(ConfigError) carrying remediation text
    """
    data: StrDict = {}
    if path is not None:
        parsed = _parse_toml(path)
        if isinstance(parsed, Err):
            return parsed
        data = parsed.value

    gitlab: StrDict = get_table(data, "gitlab") or {}
    poller: StrDict = get_table(data, "poller") or {}

    token = env.get(ENV_TOKEN, "").strip() or get_str(gitlab, "api_token")
    if not token:
        return Err(ConfigError(f"{ENV_TOKEN} is not set", hint=_SETUP_HINT, path=path))

    raw_projects = env.get(ENV_PROJECTS)
    if raw_projects is not None and raw_projects.strip():
        projects: tuple[str, ...] | None = parse_projects(raw_projects)
    else:
        projects = _projects_from_table(gitlab)
    if projects is None:
        return Err(ConfigError(f"{ENV_PROJECTS} is not set", hint=_SETUP_HINT, path=path))
    if not projects:
        return Err(
            ConfigError(f"No projects specified in {ENV_PROJECTS}", hint=_SETUP_HINT, path=path)
        )

    base_url = env.get(ENV_BASE_URL, "").strip() or get_str(gitlab, "base_url") or DEFAULT_BASE_URL
    base_url = base_url.rstrip("/")
    if not base_url.startswith(("http://", "https://")):
        return Err(
            ConfigError(
                f"{ENV_BASE_URL} must start with http:// or https://, got {base_url!r}",
                path=path,
            )
        )

    interval = _number_setting(
        env, ENV_POLL_INTERVAL, poller, "interval_seconds", DEFAULT_POLL_INTERVAL
    )
    if isinstance(interval, Err):
        return interval
    delay = _number_setting(
        env,
        ENV_STARTUP_DELAY,
        poller,
        "startup_delay_seconds",
        DEFAULT_STARTUP_DELAY,
        allow_zero=True,
    )
    if isinstance(delay, Err):
        return delay
    timeout = _number_setting(
        env, ENV_HTTP_TIMEOUT, poller, "http_timeout_seconds", DEFAULT_HTTP_TIMEOUT
    )
    if isinstance(timeout, Err):
        return timeout
    workers = _number_setting(env, ENV_MAX_WORKERS, poller, "max_workers", DEFAULT_MAX_WORKERS)
    if isinstance(workers, Err):
        return workers

    return Ok(
        MonitorConfig(
            api_token=token,
            projects=projects,
            base_url=base_url,
            poll_interval=interval.value,
            startup_delay=delay.value,
            http_timeout=timeout.value,
            max_workers=max(1, int(workers.value)),
        )
    )
