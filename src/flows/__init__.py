"""
LLM-backed flows: prompt decomposition, idea catalysis, intent interpretation,
image generation, web data analysis and page summarization.

Every flow validates the model's answer against a pydantic output model and
raises `FlowError` when the answer is missing or invalid.
"""
