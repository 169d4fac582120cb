"""
Builds AzCopy argument vectors and human readable command strings.

The argument vector is passed straight to the process (never through a
shell). The human readable string exists only for diagnostics, so a user can
re-run a transfer by hand.
"""

import os
import sys
from typing import Dict, List, Literal, Mapping, Optional, Sequence, Union
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from ..models.locations import LocalLocation, RemoteAuthLocation, RemoteSasLocation
from ..models.options import CopyOptions, DeleteOptions, FromToOption

AzCopyCommand = Literal["copy", "remove"]

OAUTH_TOKEN_ENV_VAR = "AZCOPY_OAUTH_TOKEN_INFO"
USER_AGENT_ENV_VAR = "AZCOPY_USER_AGENT_PREFIX"
# Never echoed into the human readable command
_HIDDEN_ENV_VARS = (OAUTH_TOKEN_ENV_VAR, USER_AGENT_ENV_VAR)

Location = Union[LocalLocation, RemoteSasLocation, RemoteAuthLocation]


def _encode_path_segment(segment: str) -> str:
    # AzCopy needs '*' encoded on top of normal URI component encoding
    return quote(segment, safe="!'()~").replace("*", "%2A")


def _is_file_service(resource_uri: str, from_to: Optional[FromToOption]) -> bool:
    if from_to is not None:
        return "File" in FromToOption(from_to).value
    host = urlsplit(resource_uri).hostname or ""
    return ".file." in host


def location_to_string(location: Location, from_to: Optional[FromToOption] = None) -> str:
    """Render a location the way AzCopy expects it on the command line."""
    wildcard = "*" if location.use_wildcard else ""
    if isinstance(location, LocalLocation):
        path = location.path
        if location.use_wildcard and not path.endswith((os.sep, "/")):
            path += os.sep
        return path + wildcard

    parsed = urlsplit(location.resource_uri)
    container_path = parsed.path.rstrip("/")
    encoded_path = "/".join(_encode_path_segment(part) for part in location.path.split("/"))

    query_parts: List[str] = []
    if isinstance(location, RemoteSasLocation) and location.sas_token:
        # The SAS token is already URL encoded; pass it through untouched
        query_parts.append(location.sas_token.lstrip("?"))
    if location.snapshot_id:
        key = "sharesnapshot" if _is_file_service(location.resource_uri, from_to) else "snapshot"
        query_parts.append(urlencode({key: location.snapshot_id}))

    return urlunsplit((
        parsed.scheme,
        parsed.netloc,
        container_path + encoded_path + wildcard,
        "&".join(query_parts),
        "",
    ))


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _bool_flag(value: bool) -> str:
    return "true" if value else "false"


def _copy_flags(options: CopyOptions, quote_paths: bool = False) -> List[str]:
    flags: List[str] = []
    if options.overwrite:
        flags.append(f"--overwrite={options.overwrite.value}")
    if options.check_md5:
        flags.append(f"--check-md5={options.check_md5.value}")
    if options.from_to:
        flags.append(f"--from-to={options.from_to.value}")
    if options.blob_type:
        flags.append(f"--blob-type={options.blob_type.value}")
    if options.follow_symlinks:
        flags.append("--follow-symlinks")
    if options.cap_mbps is not None:
        flags.append(f"--cap-mbps={_format_number(options.cap_mbps)}")
    if options.preserve_access_tier is not None:
        flags.append(f"--s2s-preserve-access-tier={_bool_flag(options.preserve_access_tier)}")
    if options.check_length is not None:
        flags.append(f"--check-length={_bool_flag(options.check_length)}")
    if options.put_md5:
        flags.append("--put-md5")
    if options.decompress:
        flags.append("--decompress")
    if options.preserve_smb_info is not None:
        flags.append(f"--preserve-smb-info={_bool_flag(options.preserve_smb_info)}")
    if options.preserve_smb_permissions is not None:
        flags.append(f"--preserve-smb-permissions={_bool_flag(options.preserve_smb_permissions)}")
    if options.access_tier is not None:
        flags.append(f"--block-blob-tier={options.access_tier.value}")
    if options.exclude_path:
        exclude = f'"{options.exclude_path}"' if quote_paths else options.exclude_path
        flags.append(f"--exclude-path={exclude}")
    return flags


def _delete_flags(options: DeleteOptions) -> List[str]:
    flags: List[str] = []
    if options.delete_snapshots:
        flags.append(f"--delete-snapshots={options.delete_snapshots.value}")
    return flags


def _common_flags(options: Union[CopyOptions, DeleteOptions], quote_paths: bool = False) -> List[str]:
    flags: List[str] = []
    if options.recursive:
        flags.append("--recursive")
    if options.list_of_files:
        list_of_files = f'"{options.list_of_files}"' if quote_paths else options.list_of_files
        flags.append(f"--list-of-files={list_of_files}")
    return flags


def _command_flags(
    command: AzCopyCommand,
    options: Union[CopyOptions, DeleteOptions],
    quote_paths: bool = False,
) -> List[str]:
    if command == "copy":
        if not isinstance(options, CopyOptions):
            raise TypeError("copy requires CopyOptions")
        flags = _copy_flags(options, quote_paths)
    elif command == "remove":
        if not isinstance(options, DeleteOptions):
            raise TypeError("remove requires DeleteOptions")
        flags = _delete_flags(options)
    else:
        raise ValueError(f"Unsupported AzCopy command: {command}")
    return flags + _common_flags(options, quote_paths)


def build_spawn_args(
    command: AzCopyCommand,
    locations: Sequence[str],
    options: Union[CopyOptions, DeleteOptions],
) -> List[str]:
    """Argument vector for the AzCopy process, excluding the executable."""
    args = [command, *locations, "--output-type=json", "--cancel-from-stdin"]
    args.extend(_command_flags(command, options))
    return args


def build_human_command(
    command: AzCopyCommand,
    locations: Sequence[str],
    options: Union[CopyOptions, DeleteOptions],
    env_vars: Optional[Mapping[str, str]] = None,
    platform: Optional[str] = None,
) -> str:
    """Shell command a user could run to reproduce the job."""
    env_vars = env_vars or {}
    platform = platform or sys.platform
    is_windows = platform.startswith("win")

    visible_env: Dict[str, str] = {k: v for k, v in env_vars.items() if k not in _HIDDEN_ENV_VARS}
    uses_oauth = bool(env_vars.get(OAUTH_TOKEN_ENV_VAR))

    pre_command = ""
    post_command = ""
    for name, value in visible_env.items():
        if is_windows:
            pre_command += f'$env:{name} = "{value}";\n'
            post_command += f'$env:{name} = "";\n'
        else:
            pre_command += f"export {name}={value};\n"
            post_command += f"unset {name};\n"

    if uses_oauth:
        pre_command += "./azcopy login;\n"
        post_command = "./azcopy logout;\n" + post_command

    command_args = ["./azcopy.exe" if is_windows else "./azcopy", command]
    command_args.extend(f'"{location}"' for location in locations)
    command_args.extend(_command_flags(command, options, quote_paths=True))

    return pre_command + " ".join(command_args) + ";\n" + post_command
