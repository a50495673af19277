# src/llm/adapters/openai_compatible.py - v1
"""OpenAI-compatible capabilities over the official openai SDK.

Works against any endpoint speaking the OpenAI chat completion and
embedding protocols (set ``base_url``). Headers pass through as
``extra_headers``; provider options addressed to the model's namespace pass
through as ``extra_body``. SDK errors become ProviderCallError with
retryability derived from the HTTP status or connection failure. The SDK's
own retries are disabled, and the normalizer's ``provider_metadata``
passthrough is dropped from messages before they are sent.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, NoReturn

from inferlink.core.errors import ProviderCallError
from inferlink.llm.capability import (
    BaseEmbeddingModel,
    BaseLanguageModel,
    CapabilityRequest,
)
from inferlink.llm.models import (
    CapabilityResponse,
    EmbeddingUsage,
    GeneratedText,
    LanguageModelUsage,
    ResponseInfo,
)
from inferlink.prompt.models import ToolCallPart
from inferlink.prompt.normalizer import PASSTHROUGH_KEY

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "openai-compatible"
DEFAULT_NAMESPACE = "openaiCompatible"


class _OpenAICompatibleBase:
    """Shared client handling for both capability kinds."""

    def __init__(
        self,
        model_id: str,
        provider: str = DEFAULT_PROVIDER,
        base_url: str | None = None,
        api_key: str | None = None,
        namespace: str = DEFAULT_NAMESPACE,
        client: Any = None,
        http_client: Any = None,
    ) -> None:
        self._model_id = model_id
        self._provider = provider
        self._base_url = base_url
        self._api_key = api_key
        self._namespace = namespace
        self._http_client = http_client
        self.__client = client  # Lazy initialization

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def _client(self):
        """Lazy-init AsyncOpenAI client (only on first API call)."""
        if self.__client is None:
            try:
                import openai
            except ImportError as e:
                raise ImportError("openai package required: pip install openai") from e
            # Retries belong to with_retry; the SDK must make one request per attempt.
            self.__client = openai.AsyncOpenAI(
                api_key=self._api_key or None,
                base_url=self._base_url,
                max_retries=0,
                http_client=self._http_client,
            )
        return self.__client

    def _request_kwargs(self, request: CapabilityRequest) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}
        if request.headers:
            kwargs["extra_headers"] = dict(request.headers)
        options = request.options_for(self._namespace)
        if options:
            kwargs["extra_body"] = options
        return kwargs


class OpenAICompatibleEmbeddingModel(_OpenAICompatibleBase, BaseEmbeddingModel):
    """Embedding capability for OpenAI-compatible endpoints."""

    def __init__(
        self,
        model_id: str = "text-embedding-3-small",
        max_embeddings_per_call: int | None = 2048,
        **kwargs: Any,
    ) -> None:
        super().__init__(model_id, **kwargs)
        self.max_embeddings_per_call = max_embeddings_per_call

    async def invoke(self, request: CapabilityRequest) -> CapabilityResponse:
        try:
            resp = await self._client.embeddings.create(
                model=self._model_id,
                input=list(request.input),
                encoding_format="float",
                **self._request_kwargs(request),
            )
        except Exception as e:
            _reraise(e)

        usage = EmbeddingUsage(tokens=resp.usage.prompt_tokens) if resp.usage else None
        return CapabilityResponse(
            payload=[item.embedding for item in resp.data],
            usage=usage,
            response=ResponseInfo(model_id=getattr(resp, "model", None)),
        )


class OpenAICompatibleLanguageModel(_OpenAICompatibleBase, BaseLanguageModel):
    """Chat completion capability for OpenAI-compatible endpoints."""

    def __init__(self, model_id: str = "gpt-4o", **kwargs: Any) -> None:
        super().__init__(model_id, **kwargs)
        self.wire_namespace = self._namespace

    async def invoke(self, request: CapabilityRequest) -> CapabilityResponse:
        params: dict[str, Any] = {
            "model": self._model_id,
            "messages": [_strip_passthrough(m) for m in request.input],
            **{k: v for k, v in request.call_settings.items() if v is not None},
            **self._request_kwargs(request),
        }
        try:
            resp = await self._client.chat.completions.create(**params)
        except Exception as e:
            _reraise(e)

        choice = resp.choices[0]
        usage = resp.usage
        return CapabilityResponse(
            payload=GeneratedText(
                text=choice.message.content or "",
                tool_calls=tuple(_tool_call(tc) for tc in choice.message.tool_calls or ()),
                finish_reason=choice.finish_reason or "unknown",
            ),
            usage=LanguageModelUsage(
                prompt_tokens=usage.prompt_tokens,
                completion_tokens=usage.completion_tokens,
            ) if usage else None,
            response=ResponseInfo(
                id=resp.id,
                model_id=resp.model,
                timestamp=datetime.fromtimestamp(resp.created, tz=timezone.utc),
            ),
        )


def _strip_passthrough(message: dict[str, Any]) -> dict[str, Any]:
    # Foreign-namespace overlays are not part of the chat completion schema.
    if PASSTHROUGH_KEY not in message:
        return message
    return {k: v for k, v in message.items() if k != PASSTHROUGH_KEY}


def _tool_call(tool_call: Any) -> ToolCallPart:
    arguments = tool_call.function.arguments or "{}"
    try:
        args = json.loads(arguments)
    except json.JSONDecodeError:
        logger.warning("Tool call %s returned non-JSON arguments", tool_call.id)
        args = arguments
    return ToolCallPart(
        tool_call_id=tool_call.id, tool_name=tool_call.function.name, args=args
    )


def _reraise(error: Exception) -> NoReturn:
    translated = translate_error(error)
    if translated is error:
        raise error
    raise translated from error


def translate_error(error: Exception) -> Exception:
    """Map openai SDK errors onto ProviderCallError; pass others through."""
    import openai

    if isinstance(error, openai.APIStatusError):
        return ProviderCallError(
            str(error),
            status_code=error.status_code,
            url=str(error.request.url) if error.request is not None else None,
            response_body=error.response.text if error.response is not None else None,
        )
    if isinstance(error, openai.APIConnectionError):
        # Includes APITimeoutError.
        return ProviderCallError(str(error), is_retryable=True)
    return error
