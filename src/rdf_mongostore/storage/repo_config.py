"""
Repository configuration.

A configuration names the MongoDB deployment, database and collection that
hold the quads, plus a few repository flags. It can be built from a
connection URI whose path carries both database and collection
(mongodb://host:port/db/collection), from a dict, or from a JSON or YAML
file.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

import yaml

logger = logging.getLogger(__name__)

DEFAULT_URI = "mongodb://localhost:27017"
DEFAULT_DATABASE = "quadb"
DEFAULT_COLLECTION = "quads"

_SCHEMES = ("mongodb", "mongodb+srv")


class ConfigValidationError(Exception):
    """Configuration validation error."""
    pass


@dataclass
class RepositoryConfig:
    """Connection and behaviour settings for a quad repository."""
    uri: str = DEFAULT_URI
    database: str = DEFAULT_DATABASE
    collection: str = DEFAULT_COLLECTION
    with_validity: bool = True
    create_indexes: bool = True
    client_options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_uri(cls, uri: str, **overrides: Any) -> "RepositoryConfig":
        """
        Build a configuration from a connection URI.

        A path of /db selects the database; /db/collection also selects the
        collection, which is then removed from the URI handed to the client.

        Args:
            uri: MongoDB connection URI
            **overrides: Any other RepositoryConfig field
        """
        parts = urlsplit(uri)
        segments = [s for s in parts.path.split("/") if s]

        database = overrides.pop("database", None)
        collection = overrides.pop("collection", None)
        client_uri = uri

        if segments:
            database = database or segments[0]
        if len(segments) > 1:
            collection = collection or segments[1]
            client_uri = urlunsplit(
                (parts.scheme, parts.netloc, f"/{segments[0]}", parts.query, parts.fragment)
            )

        config = cls(
            uri=client_uri,
            database=database or DEFAULT_DATABASE,
            collection=collection or DEFAULT_COLLECTION,
            **overrides,
        )
        config.validate()
        return config

    @property
    def redacted_uri(self) -> str:
        """The URI with any password masked, for log output."""
        parts = urlsplit(self.uri)
        if "@" not in parts.netloc:
            return self.uri
        credentials, hosts = parts.netloc.rsplit("@", 1)
        user = credentials.split(":", 1)[0]
        return urlunsplit(
            (parts.scheme, f"{user}:***@{hosts}", parts.path, parts.query, parts.fragment)
        )

    def validate(self) -> None:
        """
        Check the configuration.

        Raises:
            ConfigValidationError: empty names or an unsupported URI scheme
        """
        scheme = urlsplit(self.uri).scheme
        if scheme not in _SCHEMES:
            raise ConfigValidationError(
                f"Unsupported URI scheme {scheme!r}; expected one of {', '.join(_SCHEMES)}"
            )
        if not self.database:
            raise ConfigValidationError("Database name cannot be empty")
        if not self.collection:
            raise ConfigValidationError("Collection name cannot be empty")
        if "$" in self.collection or self.collection.startswith("system."):
            raise ConfigValidationError(f"Invalid collection name {self.collection!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "database": self.database,
            "collection": self.collection,
            "with_validity": self.with_validity,
            "create_indexes": self.create_indexes,
            "client_options": dict(self.client_options),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepositoryConfig":
        if "uri" in data and ("database" not in data or "collection" not in data):
            overrides = {k: v for k, v in data.items() if k != "uri"}
            return cls.from_uri(data["uri"], **overrides)
        config = cls(
            uri=data.get("uri", DEFAULT_URI),
            database=data.get("database", DEFAULT_DATABASE),
            collection=data.get("collection", DEFAULT_COLLECTION),
            with_validity=data.get("with_validity", True),
            create_indexes=data.get("create_indexes", True),
            client_options=dict(data.get("client_options", {})),
        )
        config.validate()
        return config

    def save(self, path: Path) -> None:
        """Save configuration as JSON, or YAML for .yaml/.yml paths."""
        path = Path(path)
        with open(path, "w", encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                yaml.safe_dump(self.to_dict(), f, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Path) -> "RepositoryConfig":
        """Load configuration from a JSON or YAML file."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                data: Optional[Dict[str, Any]] = yaml.safe_load(f)
            else:
                data = json.load(f)
        if not isinstance(data, dict):
            raise ConfigValidationError(f"{path} does not contain a mapping")
        logger.debug(f"Loaded repository configuration from {path}")
        return cls.from_dict(data)
