"""Frontend — read-only static asset collections.

The frontend serves ``/static/<name>`` by looking ``<name>`` up in an asset
provider: any object mapping a relative name to bytes.
"""

from __future__ import annotations

import mimetypes
import pathlib
from collections.abc import Mapping
from typing import Protocol

from fastapi.responses import PlainTextResponse, Response

from app.core.errors import AssetMountError


class AssetProvider(Protocol):
    def get(self, name: str) -> bytes | None: ...


class MappingAssets:
    """Assets held in memory."""

    def __init__(self, assets: Mapping[str, bytes]) -> None:
        self._assets = dict(assets)

    def get(self, name: str) -> bytes | None:
        return self._assets.get(name)


class DirectoryAssets:
    """Assets read from a directory; names outside it are never served."""

    def __init__(self, root: str | pathlib.Path) -> None:
        path = pathlib.Path(root)
        if not path.is_dir():
            raise AssetMountError(f"static asset directory {path} does not exist")
        self._root = path.resolve()

    def get(self, name: str) -> bytes | None:
        candidate = (self._root / name).resolve()
        if not candidate.is_relative_to(self._root) or not candidate.is_file():
            return None
        return candidate.read_bytes()


def asset_response(assets: AssetProvider, name: str) -> Response:
    body = assets.get(name)
    if body is None:
        return PlainTextResponse("404 page not found", status_code=404)
    media_type, _ = mimetypes.guess_type(name)
    return Response(content=body, media_type=media_type or "application/octet-stream")
