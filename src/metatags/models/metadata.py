from __future__ import annotations

from typing import Dict, Optional, Protocol

from pydantic import BaseModel


class MetadataContainer(Protocol):
    """Anything carrying ``labels`` and ``annotations`` string dictionaries.

    Kubernetes client ``V1ObjectMeta`` objects fit, as does :class:`ObjectMeta`.
    Either dictionary may be ``None`` until something is written to it.
    """

    labels: Optional[Dict[str, str]]
    annotations: Optional[Dict[str, str]]


class ObjectMeta(BaseModel):
    """Minimal Kubernetes-style object metadata."""

    name: Optional[str] = None
    namespace: Optional[str] = None
    labels: Optional[Dict[str, str]] = None
    annotations: Optional[Dict[str, str]] = None
