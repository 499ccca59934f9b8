"""Configuration management for cmdrelay."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cmdrelay.errors import ReplySpecError
from cmdrelay.reply.argv import DEFAULT_IDENTITY_PREFIX
from cmdrelay.reply.types import ReplySpec, SessionArgs


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="CMDRELAY_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Command reply
    command: list[str] | None = Field(None, description='Argv template, e.g. ["claude", "{{Body}}"]')
    output_format: str | None = Field(None, description="Structured output format passed to the command")
    session_new_args: list[str] | None = Field(None, description="Args used when a session starts")
    session_resume_args: list[str] | None = Field(None, description="Args used when a session resumes")
    session_args_before_body: bool = Field(default=True, description="Insert session args before the prompt")
    cwd: str | None = Field(None, description="Working directory for the command")
    media_max_mb: float | None = Field(None, description="Size cap for local MEDIA: files")
    timeout_seconds: int = Field(default=600, description="Timeout for one command run in seconds")

    # Identity
    send_system_once: bool = Field(default=False, description="Send the identity line once per session")
    identity_prefix: str = Field(default=DEFAULT_IDENTITY_PREFIX, description="Identity line for the prompt")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")

    @property
    def timeout_ms(self) -> int:
        return self.timeout_seconds * 1000

    def reply_spec(self) -> ReplySpec:
        """Build the reply spec described by these settings."""
        if not self.command:
            raise ReplySpecError("CMDRELAY_COMMAND is not configured")
        session = None
        if self.session_new_args or self.session_resume_args:
            session = SessionArgs(
                new=self.session_new_args,
                resume=self.session_resume_args,
                before_body=self.session_args_before_body,
            )
        return ReplySpec(
            command=self.command,
            output_format=self.output_format,
            session=session,
            cwd=self.cwd,
            media_max_mb=self.media_max_mb,
            identity_prefix=bool(self.identity_prefix.strip()),
        )


def get_settings() -> Settings:
    """Get application settings; pydantic-settings loads env vars and ``.env``."""
    return Settings()
