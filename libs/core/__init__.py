__all__ = [
    "llm_provider",
    "logging",
    "prompts",
]
