"""agentflow: streamed, cancellable runs of named LLM agents."""

__version__ = "0.1.0"
