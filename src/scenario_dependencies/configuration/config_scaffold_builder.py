"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "scenario-deps.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Configuration for scenario dependencies.
# Every key is optional; remove the ones you do not need to change.

dependencies:
  # Tag prefix declaring the scenario this one depends on, e.g. dependsOn:AddTwoNumbers.
  depends_on_prefix: "dependsOn:"
  # Tag that makes a scenario a legal dependency target.
  dependency_tag: "dependency"
  # wait: block until the first run of a dependency finishes, then replay its outcome.
  # skip: skip the second claimant without asserting the outcome.
  concurrent_claims: "wait"
  # wait_timeout_seconds: "<OPTIONAL>"

reporting:
  # Path of the dependency outcome workbook, relative to this file.
  # workbook_path: "<OPTIONAL>"
  terminal_summary: true
"""


def build_placeholder_configuration() -> str:
    """Build a YAML configuration template with defaults and inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the placeholder configuration template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
