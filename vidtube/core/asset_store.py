# vidtube/core/asset_store.py
import hashlib
import logging
import os
import time
from dataclasses import dataclass
from typing import Annotated, Optional

import aiofiles
import httpx
from fastapi import Depends

from vidtube.core.config import settings
from vidtube.core.uploads import remove_upload

logger = logging.getLogger(__name__)


class AssetStoreError(Exception):
    """Upload or delete on the asset host failed."""


@dataclass
class UploadedAsset:
    url: str
    public_id: str
    resource_type: str = "image"
    duration: Optional[float] = None


def sign_params(params: dict, api_secret: str) -> str:
    """Подпись Cloudinary: sha1 от отсортированных параметров + секрет."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, ""))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryAssetStore:
    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name or settings.cloudinary_cloud_name
        self.api_key = api_key or settings.cloudinary_api_key
        self.api_secret = api_secret or settings.cloudinary_api_secret
        self.base_url = (base_url or settings.cloudinary_api_url).rstrip("/")
        self.transport = transport

    def _signed(self, params: dict) -> dict:
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise AssetStoreError("Cloudinary credentials are not configured")
        params = {**params, "timestamp": int(time.time())}
        params["signature"] = sign_params(params, self.api_secret)
        params["api_key"] = self.api_key
        return params

    async def _post(self, url: str, data: dict, files: Optional[dict] = None) -> dict:
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(url, data=data, files=files)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            raise AssetStoreError(f"Asset host request failed: {e}") from e

    async def upload(self, local_path: Optional[str]) -> Optional[UploadedAsset]:
        """Uploads a local file and removes it afterwards, whatever the outcome."""
        if not local_path:
            return None
        try:
            async with aiofiles.open(local_path, "rb") as f:
                content = await f.read()
            data = self._signed({})
            body = await self._post(
                f"{self.base_url}/{self.cloud_name}/auto/upload",
                data=data,
                files={"file": (os.path.basename(local_path), content)},
            )
        except OSError as e:
            raise AssetStoreError(f"Could not read {local_path}: {e}") from e
        finally:
            remove_upload(local_path)

        logger.info(f"Uploaded {local_path} to asset host as {body.get('public_id')}")
        return UploadedAsset(
            url=body.get("secure_url") or body["url"],
            public_id=body["public_id"],
            resource_type=body.get("resource_type", "image"),
            duration=body.get("duration"),
        )

    async def delete(self, public_id: str, resource_type: str = "image") -> bool:
        data = self._signed({"public_id": public_id})
        body = await self._post(f"{self.base_url}/{self.cloud_name}/{resource_type}/destroy", data=data)
        if body.get("result") not in ("ok", "not found"):
            raise AssetStoreError(f"Asset host refused to delete {public_id}: {body.get('result')}")
        logger.info(f"Deleted asset {public_id} ({resource_type}): {body.get('result')}")
        return True


def get_asset_store() -> CloudinaryAssetStore:
    return CloudinaryAssetStore()


AssetStoreDep = Annotated[CloudinaryAssetStore, Depends(get_asset_store)]
