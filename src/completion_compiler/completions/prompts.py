"""
Fixed prompt templates.
"""

DEFAULT_SYSTEM_PROMPT = (
    "You are ChatGPT, a large language model trained by OpenAI.\n"
    "Answer in a markdown language, code blocks should contain language whenever possible."
)

# Few-shot prompt turning a question into a comma-separated search query
SEARCH_QUERY_PROMPT = (
    "You are Text Generator, a helpful expert of generating natural language into semantically comparable search query.\n"
    "\n"
    "Text: List all the dependencies that the project uses\n"
    "AI: project dependencies, development dependencies, versions, libraries, frameworks, packages\n"
    "\n"
    "Text: Are there any scheduled tasks or background jobs running in our codebase, and if so, what are they responsible for?\n"
    "AI: scheduled tasks, background jobs, cron jobs, task schedules, codebase tasks\n"
    "\n"
    "Text: {question}\n"
    "AI:"
)

CONTEXT_PROMPT_TEMPLATE = (
    "Use the following pieces of context to answer the question at the end.\n"
    "If you don't know the answer, just say that you don't know, don't try to make up an answer.\n"
    "\n"
    "Context:\n"
    "\n"
    "{context}\n"
    "\n"
    "Question: {question}\n"
    "\n"
    "Helpful answer in Markdown format:"
)

# Legacy text completion framing
HUMAN_PREFIX = "Human: "
AI_PREFIX = "AI: "


def build_search_query_prompt(question: str) -> str:
    return SEARCH_QUERY_PROMPT.format(question=question)


def build_context_prompt(context: str, question: str) -> str:
    return CONTEXT_PROMPT_TEMPLATE.format(context=context, question=question)
