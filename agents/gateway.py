"""Model gateway: the single seam between the app and Gemini.

Every model call made by the stage agents goes through ModelGateway. The
gateway exposes four capability-scoped operations and nothing else:

    generate_grounded   Free text with Google Search grounding + citations
    generate_text       Plain free text (translation, poem)
    generate_structured Output validated against a pydantic schema
    generate_image      Best-effort image synthesis (None when no image part)

Text operations run through PydanticAI agents; image generation goes
straight to the google-genai client because the image model returns inline
image parts rather than text.

Error Handling:
    - Output that fails schema validation: SchemaViolation
    - Network, auth, quota, timeout and anything else: GatewayError
    - No retries here; retry policy belongs to the caller

The gateway carries no per-call state besides a usage counter, so one
instance is shared by all agents and concurrent calls.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, TypeVar

from google import genai
from google.genai import types as genai_types
from pydantic import BaseModel
from pydantic_ai import Agent, UsageLimits, WebSearchTool
from pydantic_ai.exceptions import UnexpectedModelBehavior
from pydantic_ai.messages import BuiltinToolReturnPart, ModelMessage, ModelResponse
from pydantic_ai.models import Model

from config import Config

logger = logging.getLogger(__name__)

OutputT = TypeVar("OutputT", bound=BaseModel)

GOOGLE_PREFIX = "google-gla:"


class GatewayError(Exception):
    """Raised when a model call fails (network, auth, quota, timeout)."""


class SchemaViolation(GatewayError):
    """Raised when a structured response does not validate against its schema.

    Subclasses GatewayError so callers that do not differentiate the two can
    catch the base class only.
    """


@dataclass(frozen=True)
class Citation:
    """A grounding source returned alongside grounded text."""

    title: str
    uri: str


@dataclass(frozen=True)
class GroundedText:
    """Prose from a grounded generation plus its ordered citations."""

    text: str
    citations: list[Citation] = field(default_factory=list)

    def format_sources(self) -> str:
        """Render citations as a numbered source list for prompts."""
        return "\n".join(
            f"[{i}] Title: {c.title}, URL: {c.uri}" for i, c in enumerate(self.citations, 1)
        )


@dataclass(frozen=True)
class GeneratedImage:
    """Inline image bytes returned by the image model."""

    data: bytes
    mime_type: str = "image/png"


@dataclass
class GatewayUsage:
    """Running totals of gateway calls and token usage."""

    calls: int = 0
    failures: int = 0
    input_tokens: int = 0
    output_tokens: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "calls": self.calls,
            "failures": self.failures,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
        }


def _citations_from_content(content: Any) -> list[Citation]:
    """Pull (title, uri) pairs out of a web search return payload.

    Google grounding chunks arrive as a list of dicts with 'title' and 'uri'
    keys; a single dict or objects with those attributes are tolerated too.
    """
    if content is None:
        return []
    entries = content if isinstance(content, list) else [content]
    citations = []
    for entry in entries:
        if isinstance(entry, dict):
            uri = entry.get("uri") or entry.get("url")
            title = entry.get("title") or entry.get("domain")
        else:
            uri = getattr(entry, "uri", None) or getattr(entry, "url", None)
            title = getattr(entry, "title", None)
        if uri:
            citations.append(Citation(title=str(title or uri), uri=str(uri)))
    return citations


def extract_citations(messages: list[ModelMessage]) -> list[Citation]:
    """Collect web search citations from a run's message history.

    Args:
        messages: All messages of a PydanticAI run

    Returns:
        Citations in response order, deduplicated by URI
    """
    seen: set[str] = set()
    citations: list[Citation] = []
    for message in messages:
        if not isinstance(message, ModelResponse):
            continue
        for part in message.parts:
            if not isinstance(part, BuiltinToolReturnPart):
                continue
            if part.tool_name != WebSearchTool.kind:
                continue
            for citation in _citations_from_content(part.content):
                if citation.uri in seen:
                    continue
                seen.add(citation.uri)
                citations.append(citation)
    return citations


def _create_model(model: str | Model, client: genai.Client | None) -> str | Model:
    """Create a PydanticAI model bound to our Gemini client.

    Supports:
    - Model instances (e.g. TestModel in tests): passed through
    - 'google-gla:<name>' with a client: GoogleModel sharing that client
    - Any other model string: passed through for PydanticAI to infer
    """
    if isinstance(model, Model):
        return model
    if client is not None and model.startswith(GOOGLE_PREFIX):
        from pydantic_ai.models.google import GoogleModel
        from pydantic_ai.providers.google import GoogleProvider

        return GoogleModel(model[len(GOOGLE_PREFIX):], provider=GoogleProvider(client=client))
    return model


class ModelGateway:
    """Typed facade over the generative model service.

    Example:
        >>> gateway = ModelGateway(config)
        >>> grounded = await gateway.generate_grounded("Recent news about AI")
        >>> digest = await gateway.generate_structured(prompt, NewsDigest)
    """

    def __init__(
        self,
        config: Config,
        *,
        search_model: str | Model | None = None,
        reasoning_model: str | Model | None = None,
        image_client: Any = None,
    ):
        """Initialize the gateway.

        Args:
            config: Application configuration (models, key, timeout)
            search_model: Override for the grounded search model
            reasoning_model: Override for the text/structured model
            image_client: Override for the google-genai client used for images
        """
        self.config = config
        self.usage = GatewayUsage()
        self._client = genai.Client(api_key=config.gemini_api_key) if config.gemini_api_key else None
        self._image_client = image_client or self._client

        search = _create_model(search_model or config.search_model, self._client)
        reasoning = _create_model(reasoning_model or config.reasoning_model, self._client)

        self._grounded_agent: Agent[None, str] = Agent(
            search,
            output_type=str,
            builtin_tools=[WebSearchTool()],  # Google Search grounding
            retries=config.output_retries,
            defer_model_check=True,
        )
        self._text_agent: Agent[None, str] = Agent(
            reasoning,
            output_type=str,
            retries=config.output_retries,
            defer_model_check=True,
        )

    async def _run(self, agent: Agent, prompt: str, operation: str, output_type: Any = None):
        """Run an agent under the configured timeout and map failures.

        Returns:
            The PydanticAI run result
        """
        self.usage.calls += 1
        kwargs: dict[str, Any] = {"usage_limits": UsageLimits(request_limit=5)}
        if output_type is not None:
            kwargs["output_type"] = output_type
        try:
            result = await asyncio.wait_for(
                agent.run(prompt, **kwargs),
                timeout=self.config.request_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            self.usage.failures += 1
            logger.error("Gateway timeout | op=%s timeout=%.0fs", operation, self.config.request_timeout_seconds)
            raise GatewayError(f"{operation} timed out after {self.config.request_timeout_seconds:.0f}s") from e
        except UnexpectedModelBehavior as e:
            self.usage.failures += 1
            if output_type is not None:
                logger.error("Schema violation | op=%s error=%s", operation, e)
                raise SchemaViolation(f"{operation} returned invalid output: {e}") from e
            logger.error("Gateway call failed | op=%s error=%s type=%s", operation, e, type(e).__name__)
            raise GatewayError(f"{operation} failed: {e}") from e
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.usage.failures += 1
            logger.error("Gateway call failed | op=%s error=%s type=%s", operation, e, type(e).__name__, exc_info=True)
            raise GatewayError(f"{operation} failed ({type(e).__name__}): {e}") from e

        usage = result.usage
        input_tokens = usage.input_tokens or 0
        output_tokens = usage.output_tokens or 0
        self.usage.input_tokens += input_tokens
        self.usage.output_tokens += output_tokens
        logger.debug(
            "Gateway call complete | op=%s input_tokens=%d output_tokens=%d",
            operation, input_tokens, output_tokens,
        )
        return result

    async def generate_grounded(self, prompt: str) -> GroundedText:
        """Generate prose grounded in Google Search results.

        Raises:
            GatewayError: On any model failure
        """
        result = await self._run(self._grounded_agent, prompt, "grounded")
        citations = extract_citations(result.all_messages())
        logger.info("Grounded generation | chars=%d citations=%d", len(result.output or ""), len(citations))
        return GroundedText(text=result.output or "", citations=citations)

    async def generate_text(self, prompt: str) -> str:
        """Generate plain text without grounding.

        Raises:
            GatewayError: On any model failure
        """
        result = await self._run(self._text_agent, prompt, "text")
        return result.output or ""

    async def generate_structured(self, prompt: str, schema: type[OutputT]) -> OutputT:
        """Generate output conforming to a pydantic schema.

        Args:
            prompt: User prompt
            schema: Pydantic model class the output must validate against

        Raises:
            SchemaViolation: If the output cannot be validated
            GatewayError: On any other model failure
        """
        result = await self._run(self._text_agent, prompt, f"structured:{schema.__name__}", output_type=schema)
        if not isinstance(result.output, schema):
            self.usage.failures += 1
            raise SchemaViolation(f"Expected {schema.__name__}, got {type(result.output).__name__}")
        return result.output

    async def generate_image(self, prompt: str, aspect_ratio: str | None = None) -> GeneratedImage | None:
        """Generate an image, returning None if the response has no image part.

        Args:
            prompt: Image description
            aspect_ratio: Requested aspect ratio (default: config.image_aspect_ratio)

        Raises:
            GatewayError: On model failure or missing client
        """
        if self._image_client is None:
            raise GatewayError("Image generation requires GEMINI_API_KEY")

        self.usage.calls += 1
        image_config = genai_types.GenerateContentConfig(
            image_config=genai_types.ImageConfig(
                aspect_ratio=aspect_ratio or self.config.image_aspect_ratio,
            ),
        )
        try:
            response = await asyncio.wait_for(
                self._image_client.aio.models.generate_content(
                    model=self.config.image_model,
                    contents=prompt,
                    config=image_config,
                ),
                timeout=self.config.request_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            self.usage.failures += 1
            logger.error("Gateway timeout | op=image timeout=%.0fs", self.config.request_timeout_seconds)
            raise GatewayError(f"image timed out after {self.config.request_timeout_seconds:.0f}s") from e
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.usage.failures += 1
            logger.error("Gateway call failed | op=image error=%s type=%s", e, type(e).__name__, exc_info=True)
            raise GatewayError(f"image failed ({type(e).__name__}): {e}") from e

        candidates = getattr(response, "candidates", None) or []
        content = getattr(candidates[0], "content", None) if candidates else None
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                logger.info("Image generated | bytes=%d mime=%s", len(inline.data), inline.mime_type)
                return GeneratedImage(data=inline.data, mime_type=inline.mime_type or "image/png")

        logger.warning("Image response had no image part | model=%s", self.config.image_model)
        return None
