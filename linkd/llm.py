"""
Groq chat-model access for the LLM-backed reasoning capabilities.
"""

from typing import Optional, Type, TypeVar

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_groq import ChatGroq
from pydantic import BaseModel, ValidationError

from linkd.config import get_settings
from linkd.errors import ReasonerUnavailable, ValidationFailure
from linkd.utils.logger import logger

M = TypeVar("M", bound=BaseModel)


def get_llm(temperature: Optional[float] = None) -> ChatGroq:
    """Instantiate and return the Groq LLM client."""
    settings = get_settings()
    return ChatGroq(
        model=settings.groq_model,
        temperature=settings.llm_temperature if temperature is None else temperature,
        api_key=settings.groq_api_key,
    )


def invoke_structured(
    schema: Type[M],
    system_prompt: str,
    user_prompt: str,
    llm: Optional[ChatGroq] = None,
) -> M:
    """Ask the model for an instance of ``schema``.

    Args:
        schema: Pydantic model describing the expected reply.
        system_prompt: Instructions.
        user_prompt: Task input.
        llm: Optional pre-built client.

    Returns:
        Validated ``schema`` instance.

    Raises:
        ValidationFailure: The reply did not match the schema.
        ReasonerUnavailable: The model call itself failed.
    """
    structured_llm = (llm or get_llm()).with_structured_output(schema)
    try:
        reply = structured_llm.invoke([
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt),
        ])
    except ValidationError as exc:
        raise ValidationFailure(schema.__name__, exc) from exc
    except Exception as exc:  # provider SDKs raise assorted transport errors
        logger.error("LLM call for %s failed: %s", schema.__name__, exc)
        raise ReasonerUnavailable(str(exc)) from exc

    if reply is None:
        raise ValidationFailure(schema.__name__)
    if not isinstance(reply, schema):
        try:
            reply = schema.model_validate(reply)
        except ValidationError as exc:
            raise ValidationFailure(schema.__name__, exc) from exc
    return reply
