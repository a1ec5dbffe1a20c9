from typing import Any, AsyncIterator, Dict, Optional

import google.generativeai as genai

from ...config.settings import AdapterConfig
from ...observability.logging import AdapterLogger
from ..base import StreamHandle, UpstreamClient

logger = AdapterLogger("gemini")


class GeminiStreamHandle(StreamHandle):
    """Wraps the SDK's async streaming response."""

    def __init__(self, response: Any):
        self._response = response
        self._iterator: Optional[AsyncIterator[Any]] = None

    def __aiter__(self) -> AsyncIterator[Any]:
        if self._iterator is None:
            self._iterator = self._response.__aiter__()
        return self._iterator

    async def aggregate(self) -> Any:
        """Resolve the response so ``usage_metadata`` reflects the whole stream."""
        resolve = getattr(self._response, "resolve", None)
        if resolve is not None:
            await resolve()
        return self._response

    async def aclose(self) -> None:
        closer = getattr(self._iterator, "aclose", None)
        if closer is not None:
            await closer()


class GeminiClient(UpstreamClient):
    """Upstream client backed by ``google-generativeai``.

    Retries, deadlines and error classification belong to the adapter; this
    class only translates request dicts into SDK calls.
    """

    def __init__(self, config: AdapterConfig):
        self._config = config
        self._models: Dict[str, Any] = {}
        self._configured = False

    def _model(self, model_name: Optional[str]) -> Any:
        """Lazy, per-model ``GenerativeModel`` instances."""
        name = model_name or self._config.model_id
        if not self._configured:
            genai.configure(api_key=self._config.api_key)
            self._configured = True
        if name not in self._models:
            logger.debug("Creating generative model", model=name)
            self._models[name] = genai.GenerativeModel(
                model_name=name,
                generation_config={"temperature": self._config.temperature},
            )
        return self._models[name]

    @staticmethod
    def _call_kwargs(request: Dict[str, Any]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"generation_config": request.get("generation_config")}
        if request.get("safety_settings"):
            kwargs["safety_settings"] = request["safety_settings"]
        return kwargs

    async def generate_content(self, request: Dict[str, Any]) -> Any:
        model = self._model(request.get("model"))
        return await model.generate_content_async(request["contents"], **self._call_kwargs(request))

    async def generate_content_stream(self, request: Dict[str, Any]) -> StreamHandle:
        model = self._model(request.get("model"))
        response = await model.generate_content_async(
            request["contents"], stream=True, **self._call_kwargs(request)
        )
        return GeminiStreamHandle(response)
