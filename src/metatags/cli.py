"""
Command-line interface for metatags.

Inspects tagged record classes and decodes metadata documents into them,
which is handy when checking what an operator or controller has written
onto a live object.

Usage:
    metatags describe myapp.settings:Settings
    metatags decode myapp.settings:Settings deployment.yaml --prefix example.com
    metatags describe settings:Settings --app-dir ./myapp
"""

import argparse
import dataclasses
import importlib
import json
import os
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ValidationError

from metatags.codec import load
from metatags.converters.duration import format_duration
from metatags.core.exceptions import MetatagsError
from metatags.core.logger import configure_root_logger, get_logger
from metatags.descriptors import describe_fields, is_record_type
from metatags.models.codec_options import CodecOptions
from metatags.models.metadata import ObjectMeta

logger = get_logger(__name__)


def add_app_dir(app_dir: str) -> None:
    """Put ``app_dir`` first on ``sys.path`` so record modules of uninstalled projects import."""
    path = os.path.abspath(app_dir)
    if path not in sys.path:
        sys.path.insert(0, path)


def import_record_type(target: str) -> type:
    """
    Resolve ``module.path:ClassName`` to a record class.

    Raises:
        ValueError: If the target is malformed or not a dataclass / pydantic model
        ImportError: If the module can't be imported
    """
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Expected 'module:Class', got {target!r}")

    module = importlib.import_module(module_name)
    obj: Any = module
    for part in attr.split("."):
        obj = getattr(obj, part)

    if not is_record_type(obj):
        raise ValueError(f"{target} is not a dataclass or pydantic model")
    return obj


def read_metadata(metadata_path: str) -> ObjectMeta:
    """
    Load an ``ObjectMeta`` from a JSON/YAML file.

    The file may hold the metadata block itself or a whole object with a
    top-level ``metadata`` key, as ``kubectl get -o yaml`` prints it.
    """
    path = Path(metadata_path)
    if not path.exists():
        raise FileNotFoundError(f"Metadata file not found: {metadata_path}")

    with open(path, "r") as f:
        if path.suffix == ".json":
            document = json.load(f)
        elif path.suffix in (".yaml", ".yml"):
            document = yaml.safe_load(f)
        else:
            raise ValueError(f"Unsupported metadata format: {path.suffix}. Use .json or .yaml")

    if isinstance(document, dict) and isinstance(document.get("metadata"), dict):
        document = document["metadata"]
    return ObjectMeta.model_validate(document or {})


def _json_default(value: Any) -> Any:
    if isinstance(value, timedelta):
        return format_duration(value)
    if isinstance(value, complex):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def record_to_dict(record: Any) -> Dict[str, Any]:
    if isinstance(record, BaseModel):
        return record.model_dump()
    return dataclasses.asdict(record)


def describe(target: str) -> List[Dict[str, Any]]:
    """Tagged fields of ``target`` as plain dicts, in declaration order."""
    record_type = import_record_type(target)
    return [
        {
            "field": d.name,
            "tag_kind": d.tag_kind,
            "tag_name": d.tag_name,
            "shape": d.shape,
            "kind": d.kind.value,
        }
        for d in describe_fields(record_type)
    ]


def decode_file(
    target: str,
    metadata_path: str,
    prefix: str,
    *,
    separator: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Decode a metadata file into a new ``target`` record.

    Returns:
        The record's fields as a dict

    Example:
        >>> decode_file("myapp.settings:Settings", "meta.json", "example.com")
        {'replicas': 3, 'timeout': datetime.timedelta(seconds=90)}
    """
    record_type = import_record_type(target)
    metadata = read_metadata(metadata_path)
    logger.info(f"Decoding {metadata_path} into {record_type.__name__} with prefix {prefix!r}")

    options = CodecOptions(separator=separator or ",")
    record = load(metadata, record_type, prefix, options=options)
    return record_to_dict(record)


def cli(argv: Optional[List[str]] = None) -> None:
    """
    Command-line interface for metatags.

    Supports subcommands:
    - describe: List the tagged fields of a record class
    - decode: Decode a metadata file into a record and print it as JSON
    """
    parser = argparse.ArgumentParser(
        prog="metatags",
        description="Typed records stored in Kubernetes labels and annotations",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Command to execute"
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--app-dir",
        default=".",
        help="Directory to import the record module from (default: current directory)"
    )

    describe_parser = subparsers.add_parser(
        "describe",
        parents=[common],
        help="List the tagged fields of a record class"
    )
    describe_parser.add_argument(
        "record",
        help="Record class as module.path:ClassName"
    )

    decode_parser = subparsers.add_parser(
        "decode",
        parents=[common],
        help="Decode a metadata file (JSON or YAML) into a record"
    )
    decode_parser.add_argument(
        "record",
        help="Record class as module.path:ClassName"
    )
    decode_parser.add_argument(
        "metadata",
        help="Path to a metadata or object file (JSON or YAML)"
    )
    decode_parser.add_argument(
        "--prefix", "-p",
        required=True,
        help="Key prefix the record was stored under"
    )
    decode_parser.add_argument(
        "--separator", "-s",
        default=",",
        help="List element separator (default: ',')"
    )
    decode_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args(argv)
    configure_root_logger("DEBUG" if getattr(args, "verbose", False) else "INFO")
    if args.command:
        add_app_dir(args.app_dir)

    if args.command == "describe":
        try:
            for entry in describe(args.record):
                print(json.dumps(entry))
            sys.exit(0)
        except (MetatagsError, ImportError, AttributeError, ValueError) as e:
            logger.error(f"Describe failed: {e}")
            sys.exit(1)

    elif args.command == "decode":
        try:
            result = decode_file(args.record, args.metadata, args.prefix, separator=args.separator)
            print(json.dumps(result, default=_json_default, indent=2))
            sys.exit(0)
        except (MetatagsError, ValidationError, FileNotFoundError, ImportError, AttributeError, ValueError) as e:
            logger.error(f"Decode failed: {e}")
            sys.exit(1)

    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    cli()
