"""
MCP Interface Layer using fastmcp for agent orchestration.
"""
from typing import Any, Dict, Optional

from fastmcp import FastMCP

from growth_context.models.session import SessionContext
from growth_context.services.conversation_engine import ConversationEngine
from growth_context.services.conversation_memory import ConversationMemoryStore
from growth_context.services.document_import import DocumentImportService, ImportResult
from growth_context.services.document_parser import DocumentImportError, DocumentParser
from growth_context.services.persona_selection import select_persona
from growth_context.services.signal_extraction import analyze
from growth_context.utils.bedrock_llm import BedrockLLM
from growth_context.utils.config import config
from growth_context.utils.logging_config import get_logger

logger = get_logger(__name__)

# Initialize FastMCP application
mcp = FastMCP('Growth Context')
document_parser = DocumentParser.from_config(config.document)
document_import = DocumentImportService.from_config(config.document)

_model_client: Optional[BedrockLLM] = None
_engines: Dict[str, ConversationEngine] = {}


def get_model_client() -> BedrockLLM:
    global _model_client
    if _model_client is None:
        _model_client = BedrockLLM(config.bedrock_llm)
    return _model_client


def get_engine(user_id: str) -> ConversationEngine:
    """Conversation engine for a user, created with a fresh session on first use."""
    if not user_id or not user_id.strip():
        raise ValueError('User ID is required')

    engine = _engines.get(user_id)
    if engine is None:
        engine = ConversationEngine(session=SessionContext(user_id=user_id),
                                    model_client=get_model_client(),
                                    memory_store=ConversationMemoryStore.from_config(config.memory))
        engine.start_session()
        _engines[user_id] = engine
    return engine


@mcp.tool()
def analyze_text(text: str) -> Dict[str, Any]:
    """Extract emotion, energy, topics, goals, challenges, relationships and insights.

    Args:
        text: Any user-written text

    Returns:
        Signal bundle as a dictionary
    """
    return analyze(text).to_dict()


@mcp.tool()
def select_persona_for_text(text: str) -> Dict[str, str]:
    """Pick the companion persona that fits the emotional state of a message.

    Args:
        text: User message

    Returns:
        Dictionary with persona, emotion and energy
    """
    signals = analyze(text)
    persona = select_persona(signals.emotion, signals.energy)
    return {'persona': persona.value, 'emotion': signals.emotion.value, 'energy': signals.energy.value}


def import_text(user_id: str, title: str, content: str) -> ImportResult:
    """Parse pasted text as a plain-text document and store it in the user's memory."""
    engine = get_engine(user_id)
    # Input is always plain text, whatever extension the title carries
    parsed = document_parser.parse(f'{title}.txt', content.encode('utf-8'))
    parsed.metadata.title = title
    return document_import.integrate(parsed, engine.memory)


@mcp.tool()
def import_document_text(user_id: str, title: str, content: str) -> Dict[str, Any]:
    """Import a text document into a user's conversation memory.

    Args:
        user_id: User ID
        title: Document title or file name
        content: Document text

    Returns:
        Import result with chunk count, summary and insights

    Raises:
        Exception: If the import fails
    """
    try:
        result = import_text(user_id, title, content)

        logger.debug(f'MCP import stored {result.chunks_processed} chunks for user {user_id}')
        return result.to_dict()

    except DocumentImportError as e:
        logger.error(f'Document import error in MCP import: {e}')
        raise Exception(f'Document import failed: {e}')
    except Exception as e:
        logger.error(f'Unexpected error in MCP import: {e}')
        raise Exception(f'Document import failed: {e}')


@mcp.tool()
async def chat(user_id: str, message: str, session_type: str = 'check_in') -> Dict[str, Any]:
    """Send a message to the growth companion and get a personalized reply.

    Args:
        user_id: User ID
        message: User message
        session_type: Kind of session (default: check_in)

    Returns:
        Reply with analysis, strategy and insights
    """
    engine = get_engine(user_id)
    result = await engine.respond(message, session_type)
    return result.to_dict()


@mcp.tool()
def model_health() -> bool:
    """Check that the Bedrock model answers.

    Returns:
        True if the model is reachable
    """
    return get_model_client().health_check()


if __name__ == '__main__':
    transport = config.mcp.transport
    host = config.mcp.host
    port = config.mcp.port
    mcp.run(transport=transport, host=host, port=port)
