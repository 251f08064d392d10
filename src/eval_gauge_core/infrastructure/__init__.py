"""
Infrastructure Layer

Adapters to external LLM providers used as judges.
"""
