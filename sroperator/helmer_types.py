"""Descriptions of Helm charts and the repositories that hold them."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any


def _require(data: dict[str, Any], key: str, owner: str) -> Any:
    if key not in data:
        raise ValueError(f"{owner} requires field {key!r}")
    return data[key]


@dataclass
class HelmRepo:
    """A Helm repository and the credentials used to reach it."""

    name: str
    url: str
    username: str = ""
    password: str = ""
    cert_file: str = ""
    key_file: str = ""
    ca_file: str = ""
    insecure_skip_tls_verify: bool = False

    _KEYS = (
        ("name", "name"),
        ("url", "url"),
        ("username", "username"),
        ("password", "password"),
        ("cert_file", "certFile"),
        ("key_file", "keyFile"),
        ("ca_file", "caFile"),
        ("insecure_skip_tls_verify", "insecure_skip_tls_verify"),
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HelmRepo:
        """Build a repository from its serialised form."""
        _require(data, "name", "HelmRepo")
        _require(data, "url", "HelmRepo")
        values = {attr: data[key] for attr, key in cls._KEYS if key in data}
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Return the serialised form."""
        return {key: getattr(self, attr) for attr, key in self._KEYS}


@dataclass
class HelmChart:
    """A Helm chart: name, version, repository and tags."""

    name: str
    version: str
    repository: HelmRepo
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HelmChart:
        """Build a chart from its serialised form."""
        repository = HelmRepo.from_dict(_require(data, "repository", "HelmChart"))
        return cls(
            name=data.get("name", ""),
            version=data.get("version", ""),
            repository=repository,
            tags=list(data.get("tags") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the serialised form."""
        return {
            "name": self.name,
            "version": self.version,
            "repository": self.repository.to_dict(),
            "tags": list(self.tags),
        }

    def copy(self) -> HelmChart:
        """Return an independent copy."""
        return dataclasses.replace(
            self,
            repository=dataclasses.replace(self.repository),
            tags=list(self.tags),
        )