"""
agent - Conversational agent orchestration layer.

Contains tools, prompts, the per-run transcript and the executor that runs
the LLM+tool loop. Depends on domain/ and application/. Never imports from
infrastructure/.
"""
