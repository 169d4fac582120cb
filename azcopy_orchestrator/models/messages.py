"""
AzCopy stdout message models.

Each line AzCopy writes with ``--output-type=json`` is an envelope with a
``MessageType`` discriminator and a ``MessageContent`` payload whose shape
depends on the type.
"""

from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .transfer_status import TransferStatus


class MessageType(str, Enum):
    INFO = "Info"
    INIT = "Init"
    PROGRESS = "Progress"
    PROMPT = "Prompt"
    END_OF_JOB = "EndOfJob"
    ERROR = "Error"


class PromptType(str, Enum):
    OVERWRITE = "Overwrite"
    CANCEL = "Cancel"


class ConflictResponse(str, Enum):
    """Strings AzCopy accepts on stdin to resolve a prompt."""
    YES = "y"
    NO = "n"
    YES_TO_ALL = "a"
    NO_TO_ALL = "l"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class InitContent(_WireModel):
    log_file_location: str = Field("", alias="LogFileLocation")
    job_id: str = Field("", alias="JobID")


class ResponseOption(_WireModel):
    # Unique CamelCase display string
    response_type: str = Field("", alias="ResponseType")
    user_friendly_response_type: str = Field("", alias="UserFriendlyResponseType")
    # Exact string to be written to stdin
    response_string: str = Field(alias="ResponseString")


class PromptDetails(_WireModel):
    prompt_type: str = Field(alias="PromptType")
    prompt_target: str = Field("", alias="PromptTarget")
    response_options: List[ResponseOption] = Field(default_factory=list, alias="ResponseOptions")


class _BaseMessage(_WireModel):
    timestamp: Optional[str] = Field(None, alias="TimeStamp")


class InfoMessage(_BaseMessage):
    message_type: Literal["Info"] = Field("Info", alias="MessageType")
    content: Any = Field(None, alias="MessageContent")


class InitMessage(_BaseMessage):
    message_type: Literal["Init"] = Field("Init", alias="MessageType")
    content: InitContent = Field(alias="MessageContent")


class ProgressMessage(_BaseMessage):
    message_type: Literal["Progress"] = Field("Progress", alias="MessageType")
    content: TransferStatus = Field(alias="MessageContent")


class EndOfJobMessage(_BaseMessage):
    message_type: Literal["EndOfJob"] = Field("EndOfJob", alias="MessageType")
    content: TransferStatus = Field(alias="MessageContent")


class PromptMessage(_BaseMessage):
    message_type: Literal["Prompt"] = Field("Prompt", alias="MessageType")
    # Human readable description of the prompt
    content: Any = Field(None, alias="MessageContent")
    prompt_details: PromptDetails = Field(alias="PromptDetails")

    @property
    def is_cancel_confirmation(self) -> bool:
        return self.prompt_details.prompt_type == PromptType.CANCEL.value


class ErrorMessage(_BaseMessage):
    message_type: Literal["Error"] = Field("Error", alias="MessageType")
    content: Any = Field(None, alias="MessageContent")


AzCopyMessage = Annotated[
    Union[InfoMessage, InitMessage, ProgressMessage, EndOfJobMessage, PromptMessage, ErrorMessage],
    Field(discriminator="message_type"),
]
