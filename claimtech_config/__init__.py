"""
claimtech_config -- single entrypoint for workflow configuration.

Responsibility:
    ``get_active_policy()`` loads the workflow YAML, validates it and
    returns the kernel's frozen ``WorkflowPolicy``.

Architecture position:
    Configuration.  Sits above ``claimtech_kernel``; the kernel never
    imports this package and falls back to ``WorkflowPolicy()`` defaults.

Failure modes:
    - ``FileNotFoundError`` -- the configured file does not exist.
    - ``ValueError`` -- structural validation failure.

Audit relevance:
    Every successful load logs ``workflow_config_loaded`` with the file
    path, version and checksum.
"""

from __future__ import annotations

from pathlib import Path

from claimtech_config.loader import compute_checksum, load_yaml_file, parse_policy
from claimtech_kernel.domain.policies import WorkflowPolicy
from claimtech_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "workflow.yaml"


def get_active_policy(config_path: Path | str | None = None) -> WorkflowPolicy:
    """The workflow policy from ``config_path`` (default: bundled workflow.yaml)."""
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    data = load_yaml_file(path)
    policy = parse_policy(data)
    _logger.info(
        "workflow_config_loaded",
        extra={
            "config_path": str(path),
            "config_version": data.get("version"),
            "checksum": compute_checksum(data),
        },
    )
    return policy


__all__ = ["DEFAULT_CONFIG_PATH", "get_active_policy"]
