"""
Transfer endpoint descriptors handed to AzCopy.
"""

from typing import Annotated, Awaitable, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.json_schema import SkipJsonSchema


class LocalLocation(BaseModel):
    """A location on local disk."""
    model_config = ConfigDict(frozen=True)

    type: Literal["Local"] = "Local"
    # Absolute path; ends with a separator when it points to a directory
    path: str
    # Append a wildcard to the path. Only for directory sources.
    use_wildcard: bool = False


class RemoteSasLocation(BaseModel):
    """A blob container or file share location accessed with a SAS token."""
    model_config = ConfigDict(frozen=True)

    type: Literal["RemoteSas"] = "RemoteSas"
    # e.g. "https://acct.blob.core.windows.net/container", no trailing slash
    resource_uri: str
    # Path below the container, starting with "/", e.g. "/folder/blob"
    path: str
    sas_token: str = Field(repr=False)
    use_wildcard: bool = False
    # Blob snapshot or share snapshot id
    snapshot_id: Optional[str] = None


class RemoteAuthLocation(BaseModel):
    """A blob container or file share location accessed with an OAuth token."""
    model_config = ConfigDict(frozen=True)

    type: Literal["RemoteAuth"] = "RemoteAuth"
    resource_uri: str
    path: str
    auth_token: str = Field(repr=False)
    refresh_token: SkipJsonSchema[Optional[Callable[[], Awaitable[str]]]] = Field(default=None, exclude=True, repr=False)
    tenant_id: str = ""
    aad_endpoint: str = "https://storage.azure.com"
    use_wildcard: bool = False
    snapshot_id: Optional[str] = None


RemoteLocation = Union[RemoteSasLocation, RemoteAuthLocation]

AzCopyLocation = Annotated[
    Union[LocalLocation, RemoteSasLocation, RemoteAuthLocation],
    Field(discriminator="type"),
]
