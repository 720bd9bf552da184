# ============================================================================
# BLOB STORAGE INFRASTRUCTURE
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Infrastructure - Azure Blob Storage operations
# PURPOSE: Read and write dialectic artifacts (seed prompts, feedback, documents)
# CREATED: 18 OCT 2026
# ============================================================================
"""
Blob Storage Infrastructure

BlobRepository wraps the synchronous Azure Blob SDK:
- download_bytes: read a blob fully
- upload_text: write (overwrite) a text blob with a content type

A storage "bucket" is a blob container. ContentStorage is the async
facade services use; it runs SDK calls in the default executor.

Uses DefaultAzureCredential (or a user-assigned ManagedIdentityCredential
when AZURE_CLIENT_ID is set). AZURE_STORAGE_CONNECTION_STRING takes
precedence for local development.
"""

import asyncio
import logging
import os
import threading
from functools import partial
from typing import Any, Dict, Optional

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings

from core.config import get_defaults
from core.errors import DialecticStoreError

logger = logging.getLogger(__name__)


# ============================================================================
# BLOB REPOSITORY
# ============================================================================

class BlobRepository:
    """
    Azure Blob Storage repository.

    One instance per storage account; container clients are cached.

    Usage:
        repo = BlobRepository(account_name="dialecticstore")
        repo.upload_text("dialectic-contributions", "projects/p1/.../seed_prompt.md", text)
    """

    def __init__(
        self,
        account_name: Optional[str] = None,
        connection_string: Optional[str] = None,
    ):
        self.account_name = account_name
        self.connection_string = connection_string or os.environ.get("AZURE_STORAGE_CONNECTION_STRING")

        if not self.account_name and not self.connection_string:
            raise ValueError(
                "BlobRepository requires an account_name or AZURE_STORAGE_CONNECTION_STRING"
            )

        self._container_clients: Dict[str, Any] = {}
        self._container_clients_lock = threading.Lock()

        # Lazy initialization of Azure clients
        self._blob_service: Optional[BlobServiceClient] = None
        self._credential = None

        logger.info(f"BlobRepository initialized for account: {self.account_name or '<connection string>'}")

    # ========================================================================
    # AZURE CLIENT INITIALIZATION
    # ========================================================================

    def _get_credential(self):
        if self._credential is None:
            client_id = os.environ.get("AZURE_CLIENT_ID")
            if client_id:
                from azure.identity import ManagedIdentityCredential
                self._credential = ManagedIdentityCredential(client_id=client_id)
                logger.debug("ManagedIdentityCredential initialized with client_id")
            else:
                from azure.identity import DefaultAzureCredential
                self._credential = DefaultAzureCredential()
                logger.debug("DefaultAzureCredential initialized")
        return self._credential

    def _get_blob_service(self) -> BlobServiceClient:
        if self._blob_service is None:
            if self.connection_string:
                self._blob_service = BlobServiceClient.from_connection_string(self.connection_string)
            else:
                account_url = f"https://{self.account_name}.blob.core.windows.net"
                self._blob_service = BlobServiceClient(
                    account_url=account_url,
                    credential=self._get_credential(),
                )
                logger.debug(f"BlobServiceClient initialized for {account_url}")
        return self._blob_service

    def _get_container_client(self, container: str):
        """Cached container client (double-checked locking)."""
        if container in self._container_clients:
            return self._container_clients[container]

        with self._container_clients_lock:
            if container not in self._container_clients:
                self._container_clients[container] = self._get_blob_service().get_container_client(container)
                logger.debug(f"Created container client for: {container}")
            return self._container_clients[container]

    # ========================================================================
    # OPERATIONS
    # ========================================================================

    def download_bytes(self, container: str, blob_path: str) -> bytes:
        """
        Download a blob's full content.

        Raises:
            FileNotFoundError: blob does not exist
        """
        blob_client = self._get_container_client(container).get_blob_client(blob_path)
        try:
            return blob_client.download_blob().readall()
        except ResourceNotFoundError as e:
            raise FileNotFoundError(f"{container}/{blob_path}") from e

    def upload_text(
        self,
        container: str,
        blob_path: str,
        text: str,
        content_type: str = "text/markdown",
    ) -> Dict[str, Any]:
        """Upload (overwrite) a UTF-8 text blob."""
        data = text.encode("utf-8")
        blob_client = self._get_container_client(container).get_blob_client(blob_path)
        blob_client.upload_blob(
            data,
            overwrite=True,
            content_settings=ContentSettings(content_type=content_type),
        )
        logger.info(f"Uploaded {len(data)} bytes to {container}/{blob_path}")
        return {"container": container, "blob_path": blob_path, "size_bytes": len(data)}


# ============================================================================
# ASYNC FACADE
# ============================================================================

class ContentStorage:
    """
    Async access to dialectic content.

    Blob SDK calls run in the default executor. Failures are raised as
    DialecticStoreError so services surface them with a 500.
    """

    def __init__(self, blob_repo: BlobRepository, default_bucket: Optional[str] = None):
        self.blob_repo = blob_repo
        self.default_bucket = default_bucket or get_defaults().storage.content_bucket

    async def _run(self, func, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    async def download_bytes(self, path: str, bucket: Optional[str] = None) -> bytes:
        bucket = bucket or self.default_bucket
        try:
            return await self._run(self.blob_repo.download_bytes, bucket, path)
        except Exception as e:
            logger.error(f"Download failed for {bucket}/{path}: {e}")
            raise DialecticStoreError(f"Failed to download {path}.", details=str(e)) from e

    async def download_text(self, path: str, bucket: Optional[str] = None) -> str:
        return (await self.download_bytes(path, bucket)).decode("utf-8")

    async def upload_text(
        self,
        path: str,
        text: str,
        bucket: Optional[str] = None,
        content_type: str = "text/markdown",
    ) -> Dict[str, Any]:
        bucket = bucket or self.default_bucket
        try:
            return await self._run(self.blob_repo.upload_text, bucket, path, text, content_type)
        except Exception as e:
            logger.error(f"Upload failed for {bucket}/{path}: {e}")
            raise DialecticStoreError(f"Failed to upload {path}.", details=str(e)) from e


def get_content_storage() -> ContentStorage:
    """ContentStorage for the configured storage account and bucket."""
    storage_defaults = get_defaults().storage
    blob_repo = BlobRepository(account_name=storage_defaults.account_name)
    return ContentStorage(blob_repo, storage_defaults.content_bucket)


__all__ = ["BlobRepository", "ContentStorage", "get_content_storage"]
