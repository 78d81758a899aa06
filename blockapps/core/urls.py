"""Level addresses and query-string helpers."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from urllib.parse import unquote, urljoin, urlsplit


@dataclass(frozen=True)
class Location:
    """Where the current level was loaded from."""

    scheme: str = "blockapps"
    host: str = "levels"
    path: str = "/"
    query: str = ""

    @classmethod
    def parse(cls, url: str) -> "Location":
        parts = urlsplit(url)
        return cls(
            scheme=parts.scheme or cls.scheme,
            host=parts.netloc,
            path=parts.path or "/",
            query=parts.query,
        )

    @property
    def origin(self) -> str:
        return f"{self.scheme}://{self.host}"

    @property
    def url(self) -> str:
        query = f"?{self.query}" if self.query else ""
        return f"{self.origin}{self.path}{query}"

    @property
    def is_http(self) -> bool:
        return self.scheme in ("http", "https")

    def resolve(self, url: str) -> "Location":
        """Location of ``url`` read relative to this one, as a browser follows a link."""
        joined = urljoin(self.url, url)
        parts = urlsplit(joined)
        if parts.scheme:
            return Location.parse(joined)
        # urljoin leaves addresses under unregistered schemes unresolved.
        return Location(self.scheme, parts.netloc or self.host, parts.path or self.path, parts.query)

    def string_param(self, name: str, default: str) -> str:
        return get_string_param(self.query, name, default)

    def number_param(self, name: str, min_value: float, max_value: float) -> float:
        return get_number_param(self.query, name, min_value, max_value)


def get_string_param(query: str, name: str, default: str) -> str:
    """Value of ``name`` in ``query`` (with or without a leading '?')."""
    if not query.startswith("?"):
        query = "?" + query
    m = re.search(r"[?&]" + re.escape(name) + r"=([^&]+)", query)
    if not m:
        return default
    return unquote(m.group(1).replace("+", "%20"))


def get_number_param(query: str, name: str, min_value: float, max_value: float) -> float:
    """Numeric parameter clamped to [min_value, max_value]; min_value if absent."""
    try:
        value = float(get_string_param(query, name, "nan"))
    except ValueError:
        return min_value
    if math.isnan(value):
        return min_value
    return min(max(min_value, value), max_value)
