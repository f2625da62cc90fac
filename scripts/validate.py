#!/usr/bin/env python3
"""Validate the website configuration, code formatting, lint and security checks."""

import argparse
import shutil
import subprocess
import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from static_website.errors import StaticWebsiteError  # noqa: E402
from static_website.validation import load_config  # noqa: E402

REQUIRED_FILES = ("pyproject.toml", "website.yaml", "static_website/app.py")
CONFIG_FILE = "website.yaml"


class _Parser(argparse.ArgumentParser):
  """Argument parser that exits with status 1 on usage errors."""

  def error(self, message: str) -> None:  # type: ignore[override]
    print_error(message)
    self.print_help(sys.stderr)
    sys.exit(1)


def print_status(message: str) -> None:
  print(f"[INFO] {message}")


def print_success(message: str) -> None:
  print(f"[SUCCESS] {message}")


def print_warning(message: str) -> None:
  print(f"[WARNING] {message}")


def print_error(message: str) -> None:
  print(f"[ERROR] {message}", file=sys.stderr)


def command_exists(name: str) -> bool:
  return shutil.which(name) is not None


def run(command: list[str]) -> bool:
  """Run a command, streaming its output; True when it exits 0."""
  return subprocess.run(command, check=False).returncode == 0


def build_parser() -> argparse.ArgumentParser:
  parser = _Parser(
    description="Validate the static website project",
    epilog="Examples: validate.py -a | validate.py -t -f | validate.py --lint --security",
  )
  parser.add_argument("-a", "--all", action="store_true", help="Run all validations")
  parser.add_argument(
    "-t",
    "--terraform",
    "--template",
    dest="template",
    action="store_true",
    help="Validate website.yaml and synthesize the CloudFormation template",
  )
  parser.add_argument("-f", "--format", action="store_true", help="Check code formatting")
  parser.add_argument("-l", "--lint", action="store_true", help="Run ruff lint (if available)")
  parser.add_argument(
    "-s", "--security", action="store_true", help="Run security scanning (if available)"
  )
  return parser


def check_template() -> None:
  """Validate configuration, then synthesize. Any failure exits 1."""
  print_status("Validating website configuration...")
  try:
    config = load_config(CONFIG_FILE)
  except StaticWebsiteError as e:
    print_error(str(e))
    for error in getattr(e, "errors", []):
      print_error(f"  {error}")
    sys.exit(1)
  print_success(f"Configuration is valid ({len(config.websites)} website(s))")

  print_status("Synthesizing CloudFormation template...")
  if not command_exists("cdk"):
    print_error("AWS CDK CLI is not installed. Install with: npm install -g aws-cdk")
    sys.exit(1)
  if run(["cdk", "synth", "--quiet"]):
    print_success("Template synthesis passed")
  else:
    print_error("Template synthesis failed")
    sys.exit(1)


def check_format() -> None:
  print_status("Checking code formatting...")
  if not command_exists("ruff"):
    print_error("ruff is not installed. Install with: pip install ruff")
    sys.exit(1)
  if run(["ruff", "format", "--check", "."]):
    print_success("Code formatting is correct")
  else:
    print_warning("Some files need formatting. Run 'ruff format .' to fix")


def check_lint() -> None:
  print_status("Running ruff lint...")
  if not command_exists("ruff"):
    print_warning("ruff is not installed. Install with: pip install ruff")
    return
  if run(["ruff", "check", "."]):
    print_success("Lint passed")
  else:
    print_warning("ruff found issues (see output above)")


def check_security() -> None:
  print_status("Running security scanning...")
  if not command_exists("checkov"):
    print_warning("Checkov is not installed. Install with: pip install checkov")
    return
  if not Path("cdk.out").is_dir():
    print_warning("cdk.out not found. Run with -t first to synthesize templates")
    return
  if run(["checkov", "-d", "cdk.out", "--framework", "cloudformation"]):
    print_success("Checkov security scan passed")
  else:
    print_warning("Checkov found security issues (see output above)")


def check_layout() -> None:
  """Presence checks that only warn."""
  print_status("Running additional checks...")
  for name in REQUIRED_FILES:
    print_success(f"✓ {name} exists")

  if Path("tests").is_dir():
    test_count = len(list(Path("tests").rglob("test_*.py")))
    print_success(f"✓ Tests directory exists ({test_count} test modules)")
  else:
    print_warning("Tests directory is missing")

  for name, label in (("scripts", "Scripts directory"), ("LICENSE", "LICENSE file")):
    if Path(name).exists():
      print_success(f"✓ {label} exists")
    else:
      print_warning(f"{label} is missing")


def main(argv: list[str] | None = None) -> None:
  """Run the requested validations."""
  args = build_parser().parse_args(argv)

  selected = {
    "template": args.all or args.template,
    "format": args.all or args.format,
    "lint": args.all or args.lint,
    "security": args.all or args.security,
  }
  # No specific validation requested: run all
  if not any(selected.values()):
    selected = dict.fromkeys(selected, True)

  print_status("Starting project validation...")

  missing = [name for name in REQUIRED_FILES if not Path(name).exists()]
  if missing:
    print_error(f"This script must be run from the project root (missing: {', '.join(missing)})")
    sys.exit(1)

  if selected["template"]:
    check_template()
  if selected["format"]:
    check_format()
  if selected["lint"]:
    check_lint()
  if selected["security"]:
    check_security()

  check_layout()
  print_success("Project validation completed!")

  print()
  print_status("Validation Summary:")
  labels = {
    "template": "Configuration and synthesis",
    "format": "Formatting check",
    "lint": "Linting",
    "security": "Security scanning",
  }
  for key, label in labels.items():
    print_status(f"- {label}: {'✓' if selected[key] else '⏭'}")


if __name__ == "__main__":
  main()
