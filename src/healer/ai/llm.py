"""Language model factory for the heal completion client."""

import os
from typing import Optional

from crewai.llm import LLM
from langchain_ollama import OllamaLLM


def get_llm(model_provider: str, model_name: str, api_key: Optional[str] = None):
    """Get LLM instance based on provider and model name."""
    if model_provider == "local":
        return OllamaLLM(model=model_name)
    else:
        return LLM(
            api_key=api_key or os.getenv("GEMINI_API_KEY"),
            model=f"{model_name}",
            num_retries=5,
        )
