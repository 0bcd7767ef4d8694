"""
config_manager.py — Load / save the token configuration (config.toml).

File layout:

    [totp.github]
    secret = "JBSWY3DPEHPK3PXP"
    algorithm = "TotpSha1"
    storage = "Config"

    [totp.work-vpn]
    algorithm = "SToken"
    storage = "KeyChain"

The whole set is read once per invocation and written back wholesale after a
mutating command; there are no partial updates.
"""

import logging
import os
import tempfile
import tomllib
from pathlib import Path

import tomli_w

from .errors import ConfigError
from .models import TokenRecord

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.toml"
CONFIG_DIR_ENV = "OTPCLI_CONFIG_DIR"


def default_config_dir() -> Path:
    """$OTPCLI_CONFIG_DIR, or ~/.config/otpcli."""
    env = os.environ.get(CONFIG_DIR_ENV)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".config" / "otpcli"


def parse_config(text: str) -> dict:
    """
    Parse config.toml contents into a {name: TokenRecord} mapping.

    Raises:
        ConfigError: invalid TOML or invalid [totp.*] entries
    """
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Unable to read config as TOML: {e}") from e

    tables = data.get("totp", {})
    if not isinstance(tables, dict):
        raise ConfigError("[totp] must be a table")
    return {name: TokenRecord.from_dict(name, table) for name, table in tables.items()}


def dump_config(config: dict) -> str:
    tables = {name: config[name].to_dict() for name in sorted(config)}
    return tomli_w.dumps({"totp": tables})


class ConfigStore:
    """
    config.toml inside a config directory.

    Arguments:
        config_dir: directory holding config.toml (default_config_dir() if None)
    """

    def __init__(self, config_dir=None):
        self.config_dir = Path(config_dir) if config_dir is not None else default_config_dir()

    @property
    def path(self) -> Path:
        return self.config_dir / CONFIG_FILE

    def load(self) -> dict:
        """Return the configuration set; a missing file is an empty set."""
        if not self.path.is_file():
            logger.debug("No config file at %s, starting empty", self.path)
            return {}
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Unable to read {self.path}: {e}") from e
        return parse_config(text)

    def ensure_config_dir(self) -> None:
        if not self.config_dir.is_dir():
            logger.debug("Creating config dir: %s", self.config_dir)
            self.config_dir.mkdir(parents=True, exist_ok=True)

    def save(self, config: dict) -> None:
        """
        Write the whole configuration set.

        - Writes to a temp file in the same directory and swaps it in with
          os.replace, so readers never see a half-written file.
        - The file is created with mode 600 since it may hold inline secrets.
        """
        text = dump_config(config)
        try:
            self._write(text)
        except OSError as e:
            raise ConfigError(f"Unable to write {self.path}: {e}") from e
        logger.debug("Wrote %d entries to %s", len(config), self.path)

    def _write(self, text: str) -> None:
        self.ensure_config_dir()
        fd, tmp = tempfile.mkstemp(dir=self.config_dir, prefix=".config-", suffix=".toml")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.chmod(tmp, 0o600)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
