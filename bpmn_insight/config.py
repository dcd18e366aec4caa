"""Service configuration and environment loading for the BPMN insight API."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / '.env')


@dataclass(frozen=True)
class ServerConfig:
    """HTTP listener settings."""

    host: str = '0.0.0.0'
    port: int = 8080
    cors_origin: str = '*'


@dataclass(frozen=True)
class SupabaseConfig:
    """Managed backend (tables, storage, auth) connection."""

    url: str = ''
    service_role_key: str = ''
    files_bucket: str = 'bpmn-files'
    knowledge_bucket: str = 'ai-knowledge-base'

    @property
    def configured(self) -> bool:
        return bool(self.url and self.service_role_key)


@dataclass(frozen=True)
class LLMConfig:
    """Hosted chat-completion API settings."""

    api_key: str = ''
    base_url: str = 'https://api.openai.com/v1'
    model: str = 'gpt-4o-mini'
    temperature: float = 0.7
    max_tokens: int = 2000
    structured_output: bool = True
    cost_per_token: float = 0.000001

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class BizagiConfig:
    """Bizagi Studio deployment credentials."""

    server_url: str = ''
    api_key: str = ''
    project_id: str = ''

    @property
    def configured(self) -> bool:
        return bool(self.server_url and self.api_key and self.project_id)


@dataclass(frozen=True)
class AppConfig:
    """Root configuration assembled from environment variables."""

    server: ServerConfig = field(default_factory=ServerConfig)
    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    bizagi: BizagiConfig = field(default_factory=BizagiConfig)
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> AppConfig:
        """Build configuration from environment variables."""
        return cls(
            server=ServerConfig(
                host=os.getenv('HTTP_HOST', '0.0.0.0'),
                port=int(os.getenv('HTTP_PORT', '8080')),
                cors_origin=os.getenv('CORS_ORIGIN', '*'),
            ),
            supabase=SupabaseConfig(
                url=os.getenv('SUPABASE_URL', '').rstrip('/'),
                service_role_key=os.getenv('SUPABASE_SERVICE_ROLE_KEY', ''),
                files_bucket=os.getenv('SUPABASE_FILES_BUCKET', 'bpmn-files'),
                knowledge_bucket=os.getenv('SUPABASE_KNOWLEDGE_BUCKET', 'ai-knowledge-base'),
            ),
            llm=LLMConfig(
                api_key=os.getenv('OPENAI_API_KEY', ''),
                base_url=os.getenv('OPENAI_BASE_URL', 'https://api.openai.com/v1').rstrip('/'),
                model=os.getenv('OPENAI_MODEL', 'gpt-4o-mini'),
                temperature=float(os.getenv('OPENAI_TEMPERATURE', '0.7')),
                max_tokens=int(os.getenv('OPENAI_MAX_TOKENS', '2000')),
                structured_output=os.getenv('OPENAI_STRUCTURED_OUTPUT', 'true').lower() == 'true',
                cost_per_token=float(os.getenv('OPENAI_COST_PER_TOKEN', '0.000001')),
            ),
            bizagi=BizagiConfig(
                server_url=os.getenv('BIZAGI_SERVER_URL', '').rstrip('/'),
                api_key=os.getenv('BIZAGI_API_KEY', ''),
                project_id=os.getenv('BIZAGI_PROJECT_ID', ''),
            ),
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        )
