"""Static website hosting on S3 and CloudFront."""

from .config import Config, WebsiteConfig
from .errors import ConfigValidationError, FieldError, MissingDependencyError
from .outputs import OutputSet, project
from .resolver import ResolutionCache, ResolvedResourceSet, resolve
from .validation import collect_errors, load_config, validate_website

__all__ = [
  "Config",
  "ConfigValidationError",
  "FieldError",
  "MissingDependencyError",
  "OutputSet",
  "ResolutionCache",
  "ResolvedResourceSet",
  "WebsiteConfig",
  "collect_errors",
  "load_config",
  "project",
  "resolve",
  "validate_website",
]
