from __future__ import annotations

from typing import Any, Callable, Dict

from google import genai
from hello_agents import HelloAgentsLLM, ToolAwareSimpleAgent
from loguru import logger

from config import Configuration
from utils import strip_thinking_tokens

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
PLANNER_AGENT_NAME = "CrawlPlanner"

# (cfg, system_prompt, prompt) -> raw completion text
CompletionFn = Callable[[Configuration, str, str], str]


class LLMError(RuntimeError):
    pass


def uses_gemini(cfg: Configuration) -> bool:
    return (cfg.llm_provider or "").lower() == "google" and bool(cfg.llm_api_key)


def agent_llm_kwargs(cfg: Configuration) -> Dict[str, Any]:
    """Constructor arguments for the OpenAI-compatible / Ollama planner model.

    The model id falls back to LOCAL_LLM; an Ollama provider without an
    explicit base URL talks to the sanitized OLLAMA_BASE_URL.
    """
    model = cfg.llm_model_id or cfg.local_llm
    base_url = cfg.llm_base_url
    if not base_url and (cfg.llm_provider or "").lower() == "ollama":
        base_url = cfg.sanitized_ollama_url()

    candidates = {
        "temperature": cfg.llm_temperature,
        "model": model,
        "provider": cfg.llm_provider,
        "base_url": base_url,
        "api_key": cfg.llm_api_key,
    }
    return {k: v for k, v in candidates.items() if v is not None and v != ""}


def _ask_gemini(cfg: Configuration, system_prompt: str, prompt: str) -> str:
    model = cfg.llm_model_id or DEFAULT_GEMINI_MODEL
    logger.debug("planner completion via Gemini model {}", model)
    client = genai.Client(api_key=cfg.llm_api_key)
    response = client.models.generate_content(model=model, contents=f"{system_prompt}\n\n{prompt}")
    return response.text or ""


def _ask_agent(cfg: Configuration, system_prompt: str, prompt: str) -> str:
    kwargs = agent_llm_kwargs(cfg)
    logger.debug("planner completion via {} model {}", kwargs.get("provider", "default"), kwargs.get("model"))
    agent = ToolAwareSimpleAgent(
        name=PLANNER_AGENT_NAME,
        llm=HelloAgentsLLM(**kwargs),
        system_prompt=system_prompt,
        enable_tool_calling=False,
    )
    try:
        return agent.run(prompt) or ""
    finally:
        agent.clear_history()


def complete(cfg: Configuration, system_prompt: str, prompt: str) -> str:
    """Send one crawl or vibe prompt and return the model's text, think blocks removed."""
    cfg.require_llm()
    ask = _ask_gemini if uses_gemini(cfg) else _ask_agent
    try:
        raw = ask(cfg, system_prompt, prompt)
    except Exception as exc:
        raise LLMError(f"completion request failed: {exc}") from exc

    text = strip_thinking_tokens(raw).strip()
    if not text:
        raise LLMError("No response from language model")
    return text
