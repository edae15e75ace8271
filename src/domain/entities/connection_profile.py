"""
Domain entity for the credentials used to reach a search engine node.
See docs/Architecture.md (Domain layer) for the architectural rationale.
Zero external dependencies: pure Python dataclass only.
"""

from dataclasses import dataclass, replace

from src.domain.errors import ConfigurationError

_PROTOCOLS = ("http", "https")


@dataclass(frozen=True)
class ConnectionProfile:
    host: str
    api_key: str
    port: int = 8108
    protocol: str = "http"
    path: str = ""

    @property
    def base_url(self) -> str:
        prefix = self.path.rstrip("/")
        return f"{self.protocol}://{self.host}:{self.port}{prefix}"

    def validated(self) -> "ConnectionProfile":
        """Return a normalised copy, or raise before any network call is made.

        Raises:
            ConfigurationError: if the host or API key is blank, or the
                                protocol is not http/https.
        """
        host = (self.host or "").strip()
        api_key = (self.api_key or "").strip()
        if not host:
            raise ConfigurationError("host is required")
        if not api_key:
            raise ConfigurationError("api key is required")
        protocol = (self.protocol or "http").lower()
        if protocol not in _PROTOCOLS:
            raise ConfigurationError(f"unsupported protocol: {self.protocol!r}")
        return replace(self, host=host, api_key=api_key, protocol=protocol)

    def masked(self) -> dict:
        """Loggable view of the profile with the API key hidden."""
        return {
            "host": self.host,
            "port": self.port,
            "protocol": self.protocol,
            "path": self.path,
            "api_key": "***" if self.api_key else "",
        }
