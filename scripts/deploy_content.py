#!/usr/bin/env python3
"""Upload website content to the S3 bucket and optionally invalidate CloudFront."""

import argparse
import mimetypes
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

DEFAULT_SOURCE = "./website-content"
DEFAULT_REGION = "us-east-1"


class _Parser(argparse.ArgumentParser):
  """Argument parser that exits with status 1 on usage errors."""

  def error(self, message: str) -> None:  # type: ignore[override]
    print(f"Error: {message}", file=sys.stderr)
    self.print_help(sys.stderr)
    sys.exit(1)


@dataclass(frozen=True)
class Upload:
  """A local file that has to be copied to the bucket."""

  path: Path
  key: str
  size: int

  @property
  def content_type(self) -> str:
    guessed, _ = mimetypes.guess_type(self.path.name)
    return guessed or "application/octet-stream"


def list_remote_objects(s3: Any, bucket: str) -> dict[str, dict[str, Any]]:
  """Return {key: {"size": int, "last_modified": datetime}} for every object."""
  objects: dict[str, dict[str, Any]] = {}
  paginator = s3.get_paginator("list_objects_v2")
  for page in paginator.paginate(Bucket=bucket):
    for obj in page.get("Contents", []):
      objects[obj["Key"]] = {"size": obj["Size"], "last_modified": obj["LastModified"]}
  return objects


def plan_uploads(source: Path, remote: dict[str, dict[str, Any]]) -> list[Upload]:
  """Files that are new, differ in size, or are newer locally than in S3."""
  uploads = []
  for path in sorted(p for p in source.rglob("*") if p.is_file()):
    key = path.relative_to(source).as_posix()
    stat = path.stat()
    existing = remote.get(key)
    if existing is not None:
      local_mtime = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
      if existing["size"] == stat.st_size and local_mtime <= existing["last_modified"]:
        continue
    uploads.append(Upload(path=path, key=key, size=stat.st_size))
  return uploads


def sync(s3: Any, source: Path, bucket: str, dry_run: bool = False) -> list[Upload]:
  """Copy new and changed files from source to the bucket."""
  uploads = plan_uploads(source, list_remote_objects(s3, bucket))
  for upload in uploads:
    target = f"s3://{bucket}/{upload.key}"
    if dry_run:
      print(f"(dryrun) upload: {upload.path} to {target}")
      continue
    s3.upload_file(
      str(upload.path),
      bucket,
      upload.key,
      ExtraArgs={"ContentType": upload.content_type},
    )
    print(f"upload: {upload.path} to {target}")
  return uploads


def invalidate(cloudfront: Any, distribution_id: str) -> str:
  """Invalidate every path of the distribution; returns the invalidation ID."""
  response = cloudfront.create_invalidation(
    DistributionId=distribution_id,
    InvalidationBatch={
      "Paths": {"Quantity": 1, "Items": ["/*"]},
      "CallerReference": str(time.time()),
    },
  )
  return str(response["Invalidation"]["Id"])


def build_parser() -> argparse.ArgumentParser:
  parser = _Parser(
    description="Upload website content to the S3 bucket",
    epilog=(
      "Examples: deploy_content.py -b my-website-bucket | "
      "deploy_content.py -b my-website-bucket -c -i E1234567890ABC"
    ),
  )
  parser.add_argument("-b", "--bucket", required=True, help="S3 bucket name (required)")
  parser.add_argument(
    "-s",
    "--source",
    default=DEFAULT_SOURCE,
    help=f"Source directory path (default: {DEFAULT_SOURCE})",
  )
  parser.add_argument(
    "-r", "--region", default=DEFAULT_REGION, help=f"AWS region (default: {DEFAULT_REGION})"
  )
  parser.add_argument(
    "-d",
    "--dry-run",
    action="store_true",
    help="Show what would be uploaded without actually uploading",
  )
  parser.add_argument(
    "-c",
    "--cache-invalidation",
    action="store_true",
    help="Invalidate CloudFront cache after upload",
  )
  parser.add_argument(
    "-i", "--distribution-id", default="", help="CloudFront distribution ID for invalidation"
  )
  return parser


def main(argv: list[str] | None = None) -> None:
  """Deploy content to the bucket."""
  args = build_parser().parse_args(argv)

  source = Path(args.source)
  if not source.is_dir():
    print(f"Error: Source directory does not exist: {source}", file=sys.stderr)
    sys.exit(1)

  session = boto3.Session(region_name=args.region)

  try:
    session.client("sts").get_caller_identity()
  except (ClientError, BotoCoreError) as e:
    print(f"Error: Could not verify AWS credentials ({e})", file=sys.stderr)
    sys.exit(1)

  s3 = session.client("s3")
  try:
    s3.head_bucket(Bucket=args.bucket)
  except ClientError as e:
    print(
      f"Error: Bucket '{args.bucket}' does not exist or you don't have access to it ({e})",
      file=sys.stderr,
    )
    sys.exit(1)

  print("Starting content deployment...")
  print(f"  Bucket: {args.bucket}")
  print(f"  Source: {source}")
  print(f"  Region: {args.region}")
  print(f"  Dry run: {args.dry_run}")
  if args.dry_run:
    print("DRY RUN MODE - No files will be uploaded")

  try:
    uploads = sync(s3, source, args.bucket, dry_run=args.dry_run)
  except (ClientError, BotoCoreError) as e:
    print(f"Error: Failed to sync files to S3 ({e})", file=sys.stderr)
    sys.exit(1)

  if args.dry_run:
    print(f"✓ Dry run completed: {len(uploads)} file(s) would be uploaded")
  else:
    print(f"✓ {len(uploads)} file(s) uploaded to s3://{args.bucket}")

  if args.cache_invalidation:
    if not args.distribution_id:
      print("Warning: Cache invalidation requested but no distribution ID provided")
      print("You can manually invalidate cache using:")
      print('  aws cloudfront create-invalidation --distribution-id ID --paths "/*"')
    else:
      print("Invalidating CloudFront cache...")
      try:
        invalidation_id = invalidate(session.client("cloudfront"), args.distribution_id)
      except ClientError as e:
        print(f"Error: Failed to invalidate cache ({e})", file=sys.stderr)
        sys.exit(1)
      print(f"✓ Cache invalidation initiated: {invalidation_id}")

  print("Deployment completed successfully!")


if __name__ == "__main__":
  main()
