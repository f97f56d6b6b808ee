"""
Конфигурация клиента
"""

import logging
import os
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Optional

import toml

from .internal.http.retry import RetryPolicy, MAX_RETRY, DEFAULT_RETRY_DELAY

logger = logging.getLogger(__name__)

CONFIG_FILE = "netlify.toml"

DEFAULT_USER_AGENT = "netlify/js-client"
DEFAULT_SCHEME = "https"
DEFAULT_HOST = "api.netlify.com"
DEFAULT_PATH_PREFIX = "/api/v1"

# 1 секунда
DEFAULT_TICKET_POLL_MS = 1000
# 1 час
DEFAULT_TICKET_TIMEOUT_MS = 3_600_000


@dataclass
class ClientConfig:
    """Настройки экземпляра клиента"""

    user_agent: str = DEFAULT_USER_AGENT
    scheme: str = DEFAULT_SCHEME
    host: str = DEFAULT_HOST
    path_prefix: str = DEFAULT_PATH_PREFIX
    access_token: Optional[str] = None
    global_params: Dict[str, Any] = field(default_factory=dict)
    proxy: Optional[str] = None
    timeout: int = 30
    max_retry: int = MAX_RETRY
    retry_delay: float = DEFAULT_RETRY_DELAY
    poll_interval_ms: int = DEFAULT_TICKET_POLL_MS
    timeout_ms: int = DEFAULT_TICKET_TIMEOUT_MS
    spec: Optional[str] = None

    @property
    def base_path(self) -> str:
        return f"{self.scheme}://{self.host}{self.path_prefix}"

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_retry=self.max_retry, default_delay=self.retry_delay)

    @classmethod
    def from_file(
        cls, config_path: str = CONFIG_FILE, search_dir: str = None
    ) -> Optional["ClientConfig"]:
        """Загрузка конфигурации из файла"""
        # Если указана директория для поиска, ищем конфиг там
        if search_dir and os.path.isdir(search_dir):
            config_in_dir = os.path.join(search_dir, CONFIG_FILE)
            if os.path.exists(config_in_dir):
                config_path = config_in_dir

        if not os.path.exists(config_path):
            return None

        try:
            config_data = toml.load(config_path)
        except (OSError, toml.TomlDecodeError) as exc:
            logger.warning(f"Cannot read config {config_path}: {exc}")
            return None

        known = {name for name in cls.__dataclass_fields__}
        unknown = set(config_data) - known
        if unknown:
            logger.warning(f"Unknown config keys in {config_path}: {sorted(unknown)}")
        return cls(**{k: v for k, v in config_data.items() if k in known})

    def save_to_file(self, config_path: str = CONFIG_FILE) -> None:
        """Сохранение конфигурации в файл"""
        # toml не умеет None
        config_data = {k: v for k, v in asdict(self).items() if v is not None}

        with open(config_path, "w") as f:
            toml.dump(config_data, f)

    def merge_with_args(self, args) -> "ClientConfig":
        """Объединение с аргументами командной строки"""
        merged = asdict(self)
        for name in ("spec", "access_token", "host", "proxy"):
            value = getattr(args, name, None)
            if value:
                merged[name] = value
        return ClientConfig(**merged)
