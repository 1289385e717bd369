"""Pydantic models mirroring Dialoqbase server DTOs."""

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

T = TypeVar("T")


# =============================================================================
# Result Envelope
# =============================================================================


class ErrorInfo(BaseModel):
    """Status code and message extracted from a failed response."""

    model_config = ConfigDict(frozen=True)

    status: int
    message: str


class Result(BaseModel, Generic[T]):
    """Uniform call result: either ``data`` or ``error`` is set, never both.

    Example:
        >>> result = await client.bot.list_all()
        >>> if result.error:
        ...     print(result.error.status, result.error.message)
        ... else:
        ...     print(len(result.data))
    """

    model_config = ConfigDict(frozen=True)

    data: T | None = None
    error: ErrorInfo | None = None

    @model_validator(mode="after")
    def check_one_branch(self) -> "Result[T]":
        if self.data is not None and self.error is not None:
            raise ValueError("Result cannot carry both data and error")
        return self

    @classmethod
    def ok(cls, data: T) -> "Result[T]":
        return cls(data=data)

    @classmethod
    def fail(cls, error: ErrorInfo) -> "Result[T]":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return ``data`` or raise the error as a ``DialoqbaseFetchError``."""
        if self.error is not None:
            from .errors import DialoqbaseFetchError

            raise DialoqbaseFetchError(self.error.status, self.error.message)
        return self.data  # type: ignore[return-value]


# =============================================================================
# Admin API Types
# =============================================================================


class CoreSettings(BaseModel):
    """Instance-wide Dialoqbase settings."""

    model_config = ConfigDict(populate_by_name=True)

    no_of_bots_per_user: int = Field(alias="noOfBotsPerUser")
    allow_user_to_create_bots: bool = Field(alias="allowUserToCreateBots")
    allow_user_to_register: bool = Field(alias="allowUserToRegister")


class Model(BaseModel):
    """A chat or embedding model registered on the server."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    id: int
    name: str
    model_id: str
    model_type: str
    stream_available: bool
    model_provider: str | None = None
    local_model: bool = False
    config: Any | None = None
    hide: bool = False
    deleted: bool = False
    created_at: str = Field(alias="createdAt")


class User(BaseModel):
    """A Dialoqbase user account."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    username: str
    email: str | None = None
    is_admin: bool
    bots: int
    created_at: str = Field(alias="createdAt")


# =============================================================================
# Bot API Types
# =============================================================================


class Bot(BaseModel):
    """A bot as returned by the server."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    public_id: str | None = Field(default=None, alias="publicId")
    name: str
    description: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    provider: str | None = None
    temperature: float | None = None
    model: str | None = None
    embedding: str | None = None
    streaming: bool = False
    show_ref: bool = Field(default=False, alias="showRef")
    question_generator_prompt: str | None = Field(
        default=None, alias="questionGeneratorPrompt"
    )
    qa_prompt: str | None = Field(default=None, alias="qaPrompt")
    use_hybrid_search: bool = False
    use_rag: bool = False
    bot_protect: bool = False
    bot_api_key: str | None = None
    bot_model_api_key: str | None = None
    options: dict[str, Any] = {}
    source: list[dict[str, Any]] = []


class CreateBot(BaseModel):
    """Request to create a bot."""

    name: str | None = None
    embedding: str
    model: str
    system_prompt: str | None = None
    question_generator_prompt: str | None = None
    temperature: float | None = None


class UpdateBot(BaseModel):
    """Partial bot update; unset fields are left unchanged."""

    system_prompt: str | None = None
    question_generator_prompt: str | None = None
    name: str | None = None
    temperature: float | None = None
    model: str | None = None
    streaming: bool | None = None
    show_ref: bool | None = Field(default=None, serialization_alias="showRef")
    use_hybrid_search: bool | None = None
    bot_protect: bool | None = None
    use_rag: bool | None = None
    bot_model_api_key: str | None = None
    no_of_documents_to_retrieve: int | None = Field(
        default=None, serialization_alias="noOfDocumentsToRetrieve"
    )


class ChatHistoryItem(BaseModel):
    """A previous turn sent along with a chat message."""

    role: Literal["human", "ai"]
    text: str


class ChatRequest(BaseModel):
    """Body of a chat call."""

    message: str
    stream: bool = False
    history: list[ChatHistoryItem] | None = None
    history_id: str | None = None


class SourceDocument(BaseModel):
    """A retrieved document referenced by a bot reply."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    page_content: str | None = Field(default=None, alias="pageContent")
    metadata: dict[str, Any] = {}
    source: str | None = None
    content: str | None = None


class ChatBotReply(BaseModel):
    """The bot part of a chat response."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    text: str
    source_documents: list[SourceDocument] = Field(
        default=[], alias="sourceDocuments"
    )


class ChatHistoryEntry(BaseModel):
    """A turn of the conversation as echoed back by the server."""

    type: Literal["ai", "human"]
    text: str


class ChatResponse(BaseModel):
    """Buffered chat response."""

    model_config = ConfigDict(extra="allow")

    bot: ChatBotReply
    history: list[ChatHistoryEntry] = []


# =============================================================================
# Bot Source API Types
# =============================================================================


SourceType = Literal[
    "text", "website", "crawl", "github", "youtube", "rest", "sitemap"
]


class Source(BaseModel):
    """A source to ingest into a bot.

    ``options`` carries the type-specific settings, e.g.
    ``{"youtube_mode": "transcript"}`` for youtube or
    ``{"is_private": False, "branch": "main"}`` for github.
    """

    model_config = ConfigDict(populate_by_name=True)

    content: str
    type: SourceType
    options: dict[str, Any] | None = None
    max_depth: int | None = Field(default=None, alias="maxDepth")
    max_link: int | None = Field(default=None, alias="maxLink")

    @model_validator(mode="after")
    def apply_type_defaults(self) -> "Source":
        if self.type == "crawl":
            if self.max_depth is None:
                self.max_depth = 2
            if self.max_link is None:
                self.max_link = 10
        elif self.type == "rest" and self.options is None:
            self.options = {"method": "GET", "headers": {}, "body": None}
        elif self.type == "github" and self.options is None:
            self.options = {"is_private": False, "branch": "main"}
        elif self.type == "youtube" and not (self.options or {}).get(
            "youtube_mode"
        ):
            raise ValueError("youtube sources require options.youtube_mode")
        return self


class SourceData(BaseModel):
    """A source attached to a bot."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: str
    content: str
    location: str | None = None
    is_pending: bool = Field(alias="isPending")
    status: str
    created_at: str = Field(alias="createdAt")
    options: dict[str, Any] | None = None
