"""State handed from the root command to every subcommand."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path  # noqa: TC003

from nexushub.config import ServerSettings  # noqa: TC001
from nexushub.utils.logging_config import setup_logging


@dataclass
class CliContext:
    settings: ServerSettings
    config_path: Path | None = None
    log_level: str | None = None

    def setup_runtime(self) -> None:
        """Configure diagnostics (stderr logging, optional OTLP tracing)."""
        setup_logging(self.settings.log_level, log_file=self.settings.log_file)
        if self.settings.otlp_endpoint:
            from nexushub.utils.telemetry import configure_telemetry

            configure_telemetry(otlp_endpoint=self.settings.otlp_endpoint)

    def global_args(self) -> list[str]:
        """Root options to repeat when re-invoking ourselves as a child."""
        args: list[str] = []
        if self.config_path is not None:
            args += ["--config", str(self.config_path)]
        if self.log_level:
            args += ["--log-level", self.log_level]
        return args
