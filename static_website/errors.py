"""Exceptions raised while validating and resolving website configuration."""

from dataclasses import dataclass

CONSTRAINT = "constraint"
MISSING_DEPENDENCY = "missing_dependency"


@dataclass(frozen=True)
class FieldError:
  """A single violated constraint on a configuration field."""

  field: str
  message: str
  kind: str = CONSTRAINT

  def __str__(self) -> str:
    return f"{self.field}: {self.message}"


class StaticWebsiteError(Exception):
  """Base class for static website errors."""


class ConfigValidationError(StaticWebsiteError):
  """One or more configuration fields are invalid.

  All violations are collected, so ``errors`` may hold both constraint
  violations and missing cross-references.
  """

  def __init__(self, errors: list[FieldError], source: str | None = None) -> None:
    self.errors = list(errors)
    self.source = source
    prefix = f"{source}: " if source else ""
    details = "; ".join(str(e) for e in self.errors)
    super().__init__(f"{prefix}invalid configuration ({details})")

  @property
  def missing_dependencies(self) -> list[FieldError]:
    return [e for e in self.errors if e.kind == MISSING_DEPENDENCY]


class MissingDependencyError(StaticWebsiteError):
  """A resource references another entity that cannot be resolved."""

  def __init__(self, reference: str, needed_by: str) -> None:
    self.reference = reference
    self.needed_by = needed_by
    super().__init__(f"{needed_by} requires {reference}, which is not available")
