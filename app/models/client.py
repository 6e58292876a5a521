from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Client:
    """An OAuth client as resolved by the host model's ``get_client``.

    The grant engine only reads ``client_id``; anything else the host
    wants to carry to its own callbacks goes in ``extra``.
    """

    client_id: str
    client_secret: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
