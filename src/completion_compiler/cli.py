"""
Command-line interface for Completion-Compiler.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog

from .config import Settings, get_settings

structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(colors=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="completion-compiler",
        description="Completion-Compiler - build token-budgeted completion requests",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    compile_parser = subparsers.add_parser("compile", help="Compile a completion request")
    compile_parser.add_argument("--conversation", help="Conversation JSON file (empty conversation if omitted)")
    compile_parser.add_argument("--message", required=True, help="New user message (the last message is replayed with --retry)")
    compile_parser.add_argument("--model", help="Target model (defaults to the conversation's model)")
    compile_parser.add_argument("--retry", action="store_true", help="Regenerate the last message's response")
    compile_parser.add_argument("--contextual-search", action="store_true", help="Answer from the semantic index")
    compile_parser.add_argument("--index", help="Semantic index file (defaults to INDEX_PATH)")

    index_parser = subparsers.add_parser("index", help="Index a codebase for contextual search")
    index_parser.add_argument("paths", nargs="+", help="Files or directories to index")
    index_parser.add_argument("--output", help="Index file to write (defaults to INDEX_PATH)")

    subparsers.add_parser("models", help="List known models and their context sizes")

    config_parser = subparsers.add_parser("config", help="Show configuration")
    config_parser.add_argument("--check", action="store_true", help="Check configuration validity")

    subparsers.add_parser("init", help="Create a starter .env file")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "compile":
        sys.exit(asyncio.run(compile_request(args)))
    elif args.command == "index":
        asyncio.run(index_codebase(args.paths, args.output))
    elif args.command == "models":
        list_models()
    elif args.command == "config":
        show_config(args.check)
    elif args.command == "init":
        init_config()
    else:
        parser.print_help()


def load_conversation(path: str | None, settings: Settings):
    """Load a conversation file, or start an empty conversation."""
    from .completions import client_code_for_settings
    from .models import Conversation

    if path is None:
        return Conversation(
            client_code=client_code_for_settings(settings),
            model=settings.selected_model,
        )
    return Conversation.from_dict(json.loads(Path(path).read_text()))


async def create_retriever(settings: Settings, index_path: str | None):
    """Wire the contextual search pipeline from settings."""
    from .completions import ContextRetriever
    from .index import InMemorySemanticIndex
    from .llm import create_embeddings, create_llm

    index = InMemorySemanticIndex.load(index_path or settings.index_path)
    embeddings = create_embeddings(settings)
    try:
        llm = create_llm(settings=settings)
    except Exception:
        await embeddings.aclose()
        raise

    return ContextRetriever(
        llm=llm,
        embeddings=embeddings,
        index=index,
        search_query_model=settings.search_query_model,
        top_k=settings.retrieval_top_k,
        min_score=settings.retrieval_min_score,
        timeout=settings.retrieval_timeout_seconds,
    )


async def compile_request(args: argparse.Namespace) -> int:
    """Compile a request and print its payload."""
    from .completions import RequestCompiler
    from .errors import TotalUsageExceededError

    settings = get_settings()
    conversation = load_conversation(args.conversation, settings)

    retriever = None
    if args.contextual_search:
        try:
            retriever = await create_retriever(settings, args.index)
        except Exception as e:
            logger.warning("Contextual search disabled", error=str(e))

    compiler = RequestCompiler(settings, retriever=retriever)

    try:
        request = await compiler.compile(
            conversation,
            args.message,
            args.model,
            is_retry=args.retry,
            use_contextual_search=args.contextual_search,
        )
    except TotalUsageExceededError as e:
        logger.error("Message does not fit the model", error=str(e))
        return 1
    finally:
        if retriever is not None:
            await retriever.aclose()

    print(json.dumps(request.to_payload(), indent=2))
    return 0


async def index_codebase(paths: list[str], output: str | None) -> None:
    """Build and save a semantic index."""
    from .index import build_index
    from .llm import create_embeddings

    settings = get_settings()
    embeddings = create_embeddings(settings)
    try:
        index = await build_index(paths, embeddings)
    finally:
        await embeddings.aclose()
    saved = index.save(output or settings.index_path)
    stats = index.stats()
    print(f"Indexed {stats.chunk_count} chunks from {len(stats.sources)} files into {saved}")


def list_models() -> None:
    """Print the model catalog."""
    from .catalog import ModelCatalog

    print(f"\n{'Model':<28} {'Context':>8}  {'Kind':<28} {'Description'}")
    print("-" * 90)
    for spec in ModelCatalog().list_models():
        print(f"{spec.code:<28} {spec.max_tokens:>8}  {spec.client_code.value:<28} {spec.description}")


def show_config(check: bool) -> None:
    """Show current configuration."""
    settings = get_settings()

    def mask(value: str) -> str:
        if not value:
            return "(not set)"
        return value[:4] + "..." + value[-4:] if len(value) > 10 else "****"

    print("\n=== Completion-Compiler Configuration ===\n")

    print("Application:")
    print(f"  Display Name: {settings.display_name}")
    print(f"  Log Level: {settings.log_level}")

    print("\nService:")
    print(f"  Selected: {settings.selected_service}")
    print(f"  Model: {settings.selected_model}")
    print(f"  Chat Completion: {settings.use_chat_completion}")
    print(f"  Max Completion Tokens: {settings.max_completion_tokens}")
    print(f"  System Prompt: {'(override)' if settings.system_prompt else '(default)'}")

    print("\nCredentials:")
    print(f"  OpenAI Key: {mask(settings.openai_api_key)}")
    print(f"  Azure Key: {mask(settings.azure_openai_api_key)}")
    print(f"  Azure AD Token: {mask(settings.azure_active_directory_token)}")
    print(f"  Anthropic Key: {mask(settings.anthropic_api_key)}")
    print(f"  Llama Key: {mask(settings.llama_api_key)}")
    print(f"  Custom Service Key: {mask(settings.custom_service_api_key)}")

    print("\nContextual Search:")
    print(f"  Embedding Model: {settings.embedding_model}")
    print(f"  Search Query Model: {settings.search_query_model}")
    print(f"  Top K: {settings.retrieval_top_k}")
    print(f"  Index: {settings.index_path}")

    if check:
        print("\n=== Configuration Check ===\n")
        errors = []
        warnings = []

        config = settings.get_llm_config()
        if not config.api_key and settings.selected_service not in ("llama", "custom"):
            errors.append(f"No API key set for service '{settings.selected_service}'")

        if settings.selected_service == "azure" and not settings.azure_base_url:
            errors.append("AZURE_BASE_URL is required for the azure service")

        if settings.selected_service == "custom" and not settings.custom_service_url:
            errors.append("CUSTOM_SERVICE_URL is required for the custom service")

        from .catalog import ModelCatalog
        if ModelCatalog().get(settings.selected_model) is None:
            warnings.append(f"Model '{settings.selected_model}' has no declared context size")

        if not Path(settings.index_path).expanduser().is_file():
            warnings.append("No semantic index found - run 'completion-compiler index' for contextual search")

        if errors:
            print("❌ Errors:")
            for e in errors:
                print(f"   - {e}")

        if warnings:
            print("⚠️  Warnings:")
            for w in warnings:
                print(f"   - {w}")

        if not errors and not warnings:
            print("✅ Configuration looks good!")
        elif not errors:
            print("\n✅ Configuration is valid (with warnings)")
        else:
            print("\n❌ Configuration has errors")


def init_config() -> None:
    """Create a starter .env file."""
    env_file = Path(".env")

    if env_file.exists():
        print(f"ℹ️  {env_file} already exists")
        return

    env_content = """# Completion-Compiler Configuration

# Service: openai, azure, anthropic, llama or custom
SELECTED_SERVICE=openai

# API keys (set the one for your service)
OPENAI_API_KEY=
# AZURE_OPENAI_API_KEY=
# AZURE_BASE_URL=https://your-resource.openai.azure.com
# ANTHROPIC_API_KEY=
# LLAMA_BASE_URL=http://localhost:8080/v1

# Models
CHAT_COMPLETION_MODEL=gpt-3.5-turbo
TEXT_COMPLETION_MODEL=text-davinci-003
USE_CHAT_COMPLETION=true
MAX_COMPLETION_TOKENS=1000

# Leave empty to use the default system prompt
SYSTEM_PROMPT=

# Contextual search
EMBEDDING_MODEL=text-embedding-ada-002
SEARCH_QUERY_MODEL=gpt-4
RETRIEVAL_TOP_K=1
"""
    env_file.write_text(env_content)
    print(f"✅ Created {env_file}")
    print("\n=== Next Steps ===")
    print("1. Edit .env and add the API key of your service")
    print("2. Run: completion-compiler index <your project directory>")
    print("3. Run: completion-compiler compile --message \"How is the project built?\" --contextual-search")


if __name__ == "__main__":
    main()
