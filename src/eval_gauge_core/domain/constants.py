"""
Domain Constants

Centrally manages constants shared across the evaluation harness.
"""

# Key of the primary output in a task's output mapping
PRIMARY_OUTPUT_KEY = "output"

# Key of the retrieval context in task outputs / example metadata
DEFAULT_CONTEXT_KEY = "context"

# Default evaluator names and thresholds
EXACT_MATCH_NAME = "Exact Match"
EXACT_MATCH_THRESHOLD = 1.0
REGEX_NAME = "Regex Match"
REGEX_THRESHOLD = 1.0
LLM_JUDGE_THRESHOLD = 0.5
FAITHFULNESS_NAME = "Faithfulness"
FAITHFULNESS_THRESHOLD = 0.8
HALLUCINATION_NAME = "Hallucination"
HALLUCINATION_THRESHOLD = 0.5
PRECISION_NAME = "Precision"
RECALL_NAME = "Recall"
RETRIEVAL_THRESHOLD = 0.5
CONTEXTUAL_RELEVANCE_NAME = "Contextual Relevance"
CONTEXTUAL_RELEVANCE_THRESHOLD = 0.5

# Keys of the retrieved items (task outputs) and the relevant items (example metadata)
DEFAULT_RETRIEVED_KEY = "retrieved"
DEFAULT_RELEVANT_KEY = "relevant"

# Run tracking
DEFAULT_PROJECT = "default"
DEFAULT_TREND_LIMIT = 20
DEFAULT_PAGE_SIZE = 20

# Default judge model
DEFAULT_JUDGE_MODEL = "gemini-2.5-flash"
