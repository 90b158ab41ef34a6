"""
Configuration management for the model client and the context engine.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class BedrockLLMConfig:
    """Configuration for Amazon Bedrock LLM service."""
    region: str
    model_id: str
    max_tokens: int
    temperature: float
    retry_attempts: int
    retry_delay: float


@dataclass
class MemoryConfig:
    """Configuration for the bounded conversation memory windows."""
    max_turns: int
    max_emotional_samples: int
    max_imported_chunks: int
    max_imported_patterns: int


@dataclass
class CacheConfig:
    """Configuration for the response cache."""
    max_size: int
    ttl_ms: int
    key_length: int
    evict_fraction: float


@dataclass
class DocumentConfig:
    """Configuration for document import."""
    chunk_size: int
    min_chunk_length: int
    max_file_bytes: int


@dataclass
class MCPConfig:
    """Configuration for MCP interface."""
    transport: str
    host: str
    port: int


@dataclass
class AppConfig:
    """Main application configuration."""
    environment: str
    log_level: str
    bedrock_llm: BedrockLLMConfig
    memory: MemoryConfig
    cache: CacheConfig
    document: DocumentConfig
    mcp: MCPConfig


def load_config() -> AppConfig:
    """Load configuration from environment variables with defaults."""
    environment = os.getenv('ENVIRONMENT', 'development')

    # Bedrock configuration
    bedrock_llm_config = BedrockLLMConfig(region=os.getenv('BEDROCK_LLM_AWS_REGION', 'us-east-1'),
                                          model_id=os.getenv('BEDROCK_LLM_MODEL_ID', 'anthropic.claude-3-5-sonnet-20241022-v2:0'),
                                          max_tokens=int(os.getenv('BEDROCK_LLM_MAX_TOKENS', '1500')),
                                          temperature=float(os.getenv('BEDROCK_LLM_TEMPERATURE', '0.7')),
                                          retry_attempts=int(os.getenv('BEDROCK_LLM_RETRY_ATTEMPTS', '3')),
                                          retry_delay=float(os.getenv('BEDROCK_LLM_RETRY_DELAY', '1.0')))

    # Memory windows
    memory_config = MemoryConfig(max_turns=int(os.getenv('MEMORY_MAX_TURNS', '50')),
                                 max_emotional_samples=int(os.getenv('MEMORY_MAX_EMOTIONAL_SAMPLES', '50')),
                                 max_imported_chunks=int(os.getenv('MEMORY_MAX_IMPORTED_CHUNKS', '200')),
                                 max_imported_patterns=int(os.getenv('MEMORY_MAX_IMPORTED_PATTERNS', '100')))

    # Response cache
    cache_config = CacheConfig(max_size=int(os.getenv('CACHE_MAX_SIZE', '100')),
                               ttl_ms=int(os.getenv('CACHE_TTL_MS', '300000')),
                               key_length=int(os.getenv('CACHE_KEY_LENGTH', '50')),
                               evict_fraction=float(os.getenv('CACHE_EVICT_FRACTION', '0.2')))

    # Document import
    document_config = DocumentConfig(chunk_size=int(os.getenv('DOCUMENT_CHUNK_SIZE', '1000')),
                                     min_chunk_length=int(os.getenv('DOCUMENT_MIN_CHUNK_LENGTH', '50')),
                                     max_file_bytes=int(os.getenv('DOCUMENT_MAX_FILE_BYTES', str(10 * 1024 * 1024))))

    # MCP configuration
    mcp_config = MCPConfig(transport=os.getenv('MCP_TRANSPORT', 'sse'),
                           host=os.getenv('MCP_HOST', '127.0.0.1'),
                           port=int(os.getenv('MCP_PORT', '8000')))

    return AppConfig(environment=environment,
                     log_level=os.getenv('LOG_LEVEL', 'INFO'),
                     bedrock_llm=bedrock_llm_config,
                     memory=memory_config,
                     cache=cache_config,
                     document=document_config,
                     mcp=mcp_config)


# Global configuration instance
config = load_config()
