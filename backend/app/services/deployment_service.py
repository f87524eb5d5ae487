# backend/app/services/deployment_service.py
import logging
import re
import shlex
from datetime import datetime
from typing import Any, List, Optional

from ..models import Project, StorageTier, as_number
from .config_parser import parse_config

logger = logging.getLogger(__name__)

_LINUX_TOKENS = ("ubuntu", "linux")


def _instance_name(display_name: str) -> str:
    return re.sub(r"\s+", "-", display_name or "")


def _one_line(text: Any) -> str:
    # Comments and echo output stay on one line
    return re.sub(r"[\r\n]+", " ", str(text or ""))


def _echo(text: str) -> str:
    return f"echo {shlex.quote(_one_line(text))}"


def _count(value: Any) -> int:
    quantity = int(as_number(value))
    return quantity if quantity > 0 else 1


def generate_deployment_script(project: Project, generated_at: Optional[datetime] = None) -> str:
    """
    Render a bash provisioning script with one block per infrastructure item.

    User-entered text (project name, display name, OS, storage tier) is passed
    through ``shlex.quote`` wherever the shell would evaluate it.
    """
    stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    lines: List[str] = [
        "#!/bin/bash",
        f"# Deployment Script for Project: {_one_line(project.name)}",
        f"# Generated on: {stamp}",
        "",
        _echo(f"Starting infrastructure provisioning for {project.name}..."),
        "",
    ]

    for idx, item in enumerate(project.infrastructure, start=1):
        config = parse_config(item.configuration_text)
        tier = item.storage_tier.value if isinstance(item.storage_tier, StorageTier) else str(item.storage_tier)
        os_name = _one_line(item.operating_system)
        count = _count(item.quantity)

        lines.append(f"# --- Server {idx}: {_one_line(item.display_name)} ---")
        lines.append(_echo(f"Provisioning {count}x {item.display_name} ({os_name})..."))
        lines.append(_echo(
            f"Config: {config.cpu_cores} vCPU, {config.ram_gb}GB RAM, {config.storage_gb}GB Disk ({tier})"
        ))
        if any(token in os_name.lower() for token in _LINUX_TOKENS):
            lines.append("# Example CLI Command")
            lines.append(
                f"cloud-cli compute instance create --name {shlex.quote(_instance_name(item.display_name))} "
                f"--cpu {config.cpu_cores} --ram {config.ram_gb} --disk {config.storage_gb} "
                f"--image {shlex.quote(os_name)} --count {count}"
            )
        else:
            lines.append(f"# Manual provisioning required for {os_name or 'unknown OS'}")
        lines.append("")

    lines.append('echo "Provisioning complete."')
    logger.debug("Generated deployment script for %s (%d items)", project.name, len(project.infrastructure))
    return "\n".join(lines) + "\n"
