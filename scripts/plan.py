#!/usr/bin/env python3
"""Print the resolved resources and outputs for each configured website."""

import argparse
import json
import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from static_website.errors import StaticWebsiteError  # noqa: E402
from static_website.outputs import project  # noqa: E402
from static_website.resolver import resolve  # noqa: E402
from static_website.validation import load_config  # noqa: E402


def build_plan(config_path: str, show_sensitive: bool = False) -> list[dict]:
  """Resolve every website in the config file."""
  config = load_config(config_path)
  plan = []
  for website in config.websites:
    resolved = resolve(website)
    plan.append(
      {
        "domain_name": website.domain_name,
        "resources": resolved.to_dict(),
        "outputs": project(resolved).to_dict(include_sensitive=show_sensitive),
      }
    )
  return plan


def main() -> None:
  """Main entry point."""
  parser = argparse.ArgumentParser(description="Show the resolved website resources")
  parser.add_argument(
    "config",
    nargs="?",
    default="website.yaml",
    help="Configuration file (default: website.yaml)",
  )
  parser.add_argument(
    "--show-sensitive",
    action="store_true",
    help="Include sensitive outputs such as certificate validation records",
  )
  args = parser.parse_args()

  try:
    plan = build_plan(args.config, args.show_sensitive)
  except StaticWebsiteError as e:
    print(f"Error: {e}", file=sys.stderr)
    sys.exit(1)

  print(json.dumps(plan, indent=2, sort_keys=True))


if __name__ == "__main__":
  main()
