"""
Builds AzCopy locations from local paths and Azure Storage resources.
"""

import asyncio
import os
import posixpath
from typing import Awaitable, Callable, Optional

from azure.core.credentials import TokenCredential
from azure.storage.blob import BlobServiceClient

from ..config.settings import get_settings
from ..models.locations import LocalLocation, RemoteAuthLocation, RemoteSasLocation


def create_local_location(path: str, is_folder: bool = False) -> LocalLocation:
    """Local location; folders get a trailing separator and a wildcard."""
    if is_folder and not path.endswith(os.sep):
        path += os.sep
    return LocalLocation(path=path, use_wildcard=is_folder)


def _normalize_remote_path(remote_path: str, is_directory: bool) -> str:
    path = remote_path
    if is_directory and not path.endswith(posixpath.sep):
        path += posixpath.sep
    # Path must begin with '/' to transfer properly
    if not path.startswith(posixpath.sep):
        path = posixpath.sep + path
    return path


def create_remote_location(
    resource_uri: str,
    remote_path: str,
    is_directory: bool = False,
    sas_token: Optional[str] = None,
    access_token: Optional[str] = None,
    refresh_token: Optional[Callable[[], Awaitable[str]]] = None,
    tenant_id: str = "",
    snapshot_id: Optional[str] = None,
):
    """
    Remote location for a container or share.

    An access token wins over a SAS token, mirroring accounts where shared key
    access is disabled.
    """
    path = _normalize_remote_path(remote_path, is_directory)

    if access_token:
        return RemoteAuthLocation(
            resource_uri=resource_uri,
            path=path,
            auth_token=access_token,
            refresh_token=refresh_token,
            tenant_id=tenant_id,
            aad_endpoint=get_settings().aad_endpoint,
            use_wildcard=is_directory,
            snapshot_id=snapshot_id,
        )
    if sas_token:
        return RemoteSasLocation(
            resource_uri=resource_uri,
            path=path,
            sas_token=sas_token,
            use_wildcard=is_directory,
            snapshot_id=snapshot_id,
        )
    raise ValueError(f'No sasToken or accessToken found for resourceUri "{resource_uri}".')


def get_container_resource_uri(storage_client: BlobServiceClient, container_name: str) -> str:
    """Resource URI of a blob container, without trailing slash."""
    return storage_client.get_container_client(container_name).url.rstrip("/")


def token_refresh_callback(
    credential: TokenCredential,
    scope: Optional[str] = None,
) -> Callable[[], Awaitable[str]]:
    """Wrap a sync azure-core credential as an async refresh callback."""
    scope = scope or f"{get_settings().aad_endpoint}/.default"

    async def refresh() -> str:
        access_token = await asyncio.to_thread(credential.get_token, scope)
        return access_token.token

    return refresh
