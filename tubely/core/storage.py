from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, BinaryIO, Union

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from tubely.assets.errors import StorageUnavailable
from tubely.assets.locator import AssetLocator

from .config import Settings
from .logging import get_logger

Body = Union[bytes, BinaryIO]

logger = get_logger(component="storage")


class AssetStore(ABC):
    @abstractmethod
    def put(self, key: str, body: Body, content_type: str) -> None: ...

    @abstractmethod
    def get(self, key: str) -> bytes: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    def content_type(self, key: str) -> str | None:
        """Media type recorded at upload, when the backend keeps one."""
        return None


class LocalAssetStore(AssetStore):
    """Filesystem-backed store rooted at the configured assets directory."""

    def __init__(self, base_path: Path):
        self.base_path = Path(base_path)

    def _resolve(self, key: str) -> Path:
        path = (self.base_path / key).resolve()
        if not path.is_relative_to(self.base_path.resolve()):
            raise StorageUnavailable(f"key escapes the assets root: {key}")
        return path

    def put(self, key: str, body: Body, content_type: str) -> None:
        path = self._resolve(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("wb") as handle:
                if isinstance(body, (bytes, bytearray)):
                    handle.write(body)
                else:
                    shutil.copyfileobj(body, handle)
        except OSError as exc:
            raise StorageUnavailable(f"cannot write {key}") from exc

    def get(self, key: str) -> bytes:
        path = self._resolve(key)
        if not path.is_file():
            raise FileNotFoundError(key)
        return path.read_bytes()

    def delete(self, key: str) -> None:
        try:
            self._resolve(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f"cannot delete {key}") from exc


class MemoryAssetStore(AssetStore):
    """Keeps assets in an instance dictionary. Contents vanish with the process."""

    def __init__(self) -> None:
        self._objects: dict[str, tuple[bytes, str]] = {}

    def put(self, key: str, body: Body, content_type: str) -> None:
        data = bytes(body) if isinstance(body, (bytes, bytearray)) else body.read()
        self._objects[key] = (data, content_type)

    def get(self, key: str) -> bytes:
        try:
            return self._objects[key][0]
        except KeyError:
            raise FileNotFoundError(key) from None

    def content_type(self, key: str) -> str:
        try:
            return self._objects[key][1]
        except KeyError:
            raise FileNotFoundError(key) from None

    def delete(self, key: str) -> None:
        self._objects.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._objects

    def __len__(self) -> int:
        return len(self._objects)


class S3AssetStore(AssetStore):
    """Stores assets as objects in a single S3 bucket."""

    def __init__(self, bucket: str, *, client: Any = None, region: str | None = None, endpoint_url: str | None = None):
        self.bucket = bucket
        if client is None:
            session = boto3.session.Session(region_name=region)
            client = session.client("s3", endpoint_url=endpoint_url, config=Config(signature_version="s3v4"))
        self.s3 = client

    def put(self, key: str, body: Body, content_type: str) -> None:
        try:
            self.s3.put_object(Bucket=self.bucket, Key=key, Body=body, ContentType=content_type)
        except (ClientError, BotoCoreError) as exc:
            logger.warning("s3_put_failed", bucket=self.bucket, key=key, error=str(exc))
            raise StorageUnavailable(f"cannot upload {key} to {self.bucket}") from exc

    def get(self, key: str) -> bytes:
        try:
            response = self.s3.get_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code in {"NoSuchKey", "404"}:
                raise FileNotFoundError(key) from exc
            raise StorageUnavailable(f"cannot download {key} from {self.bucket}") from exc
        except BotoCoreError as exc:
            raise StorageUnavailable(f"cannot download {key} from {self.bucket}") from exc
        return response["Body"].read()

    def delete(self, key: str) -> None:
        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise StorageUnavailable(f"cannot delete {key} from {self.bucket}") from exc


def get_asset_store(settings: Settings, locator: AssetLocator) -> AssetStore:
    if settings.storage_mode == "local":
        return LocalAssetStore(base_path=locator.assets_root)
    if settings.storage_mode == "memory":
        return MemoryAssetStore()
    if settings.storage_mode == "s3":
        return S3AssetStore(
            settings.s3_bucket or "",
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
        )
    raise ValueError(f"Unsupported storage mode: {settings.storage_mode}")


__all__ = [
    "AssetStore",
    "LocalAssetStore",
    "MemoryAssetStore",
    "S3AssetStore",
    "get_asset_store",
]
