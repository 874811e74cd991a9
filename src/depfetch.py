"""depfetch - Resolve Maven POMs and version metadata from remote repositories.

    Returns:
        int: Exit code
"""
import json
import logging
import sys
import threading
from typing import Any, Dict, List, Optional

from args import parse_args
from cli_config import ResolverConfig, load_config_file
from constants import ExitCodes
from common.errors import ConfigError
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from registry.maven import (
    Coordinate,
    EventRecorder,
    MavenClient,
    ResolveRequest,
    latest_release,
    load_project_poms,
)

logger = logging.getLogger(__name__)


class ErrorCollector:
    """Error channel that logs each failure and remembers it per coordinate."""

    def __init__(self):
        self._lock = threading.Lock()
        self.errors: Dict[str, str] = {}

    def __call__(self, error: BaseException) -> None:
        logger.warning("%s", error)
        key = str(getattr(error, "coordinate", "")) or type(error).__name__
        with self._lock:
            self.errors[key] = str(error)


def load_pkgs_file(file_name: str) -> List[str]:
    """Loads coordinates from a file, skipping blank lines and # comments."""
    with open(file_name, encoding="utf-8") as file:
        return [
            line.strip() for line in file
            if line.strip() and not line.strip().startswith("#")
        ]


def build_tokens(args) -> List[str]:
    """Collect coordinate tokens from -p and -l arguments."""
    tokens: List[str] = list(args.SINGLE or [])
    for file_name in args.LIST_FROM_FILE or []:
        tokens.extend(load_pkgs_file(file_name))
    return tokens


def resolve_poms(client: MavenClient, tokens: List[str], errors: ErrorCollector) -> List[Dict[str, Any]]:
    """Resolve every token to a POM; unparsable tokens are reported, not fatal."""
    results: List[Optional[Dict[str, Any]]] = []
    requests_: List[ResolveRequest] = []
    for token in tokens:
        try:
            requests_.append(ResolveRequest(Coordinate.parse(token), repositories=client.config.repositories))
            results.append(None)
        except ValueError as e:
            errors(e)
            results.append({"coordinate": token, "resolved": False, "error": str(e)})

    manifests = iter(client.artifacts.resolve_all(requests_, max_workers=client.config.max_workers))
    pending = iter(requests_)
    for i, result in enumerate(results):
        if result is not None:
            continue
        key = str(next(pending).coordinate)
        manifest = next(manifests)
        if manifest is None:
            results[i] = {"coordinate": key, "resolved": False, "error": errors.errors.get(key)}
            continue
        results[i] = {
            "coordinate": key,
            "resolved": True,
            "snapshot_version": manifest.snapshot_version,
            "repository": manifest.repository.uri if manifest.repository else None,
            "source": str(manifest.source_path),
        }
    return [r for r in results if r is not None]


def resolve_metadata(client: MavenClient, tokens: List[str], errors: ErrorCollector) -> List[Dict[str, Any]]:
    """List versions of every group:artifact token."""
    results: List[Dict[str, Any]] = []
    for token in tokens:
        parts = [p.strip() for p in token.split(":")]
        if len(parts) < 2 or not parts[0] or not parts[1]:
            errors(ValueError(f"expected group:artifact, got {token!r}"))
            results.append({"coordinate": token, "resolved": False})
            continue
        group, artifact = parts[0], parts[1]
        metadata = client.download_metadata(group, artifact)
        results.append({
            "coordinate": f"{group}:{artifact}",
            "resolved": not metadata.is_empty,
            "versions": list(metadata.versions),
            "latest_release": latest_release(metadata),
        })
    return results


def write_output(results: List[Dict[str, Any]], path: Optional[str]) -> None:
    """Write results as JSON to ``path`` or stdout."""
    payload = json.dumps(results, indent=2)
    if path:
        with open(path, "w", encoding="utf-8") as file:
            file.write(payload + "\n")
        logger.info("JSON file written to %s", path)
    else:
        print(payload)


def _setup_logging(args) -> None:
    configure_logging(getattr(args, "LOG_LEVEL", None))
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def main(argv=None) -> int:
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)

    if is_debug_enabled(logger):
        logger.debug("CLI start", extra=extra_context(event="function_entry", component="cli", action="main"))

    try:
        config = ResolverConfig.from_args(args, load_config_file(getattr(args, "CONFIG", None)))
        tokens = build_tokens(args)
        project_poms = load_project_poms(args.FROM_SRC, args.RECURSIVE) if args.FROM_SRC else {}
    except (ConfigError, OSError) as e:
        logger.error("%s", e)
        return ExitCodes.FILE_ERROR.value

    if not tokens:
        logger.warning("No coordinates given.")
        return ExitCodes.SUCCESS.value

    errors = ErrorCollector()
    recorder = EventRecorder()
    with MavenClient(config, project_poms=project_poms, event_sink=recorder, on_error=errors) as client:
        if args.METADATA:
            results = resolve_metadata(client, tokens, errors)
        else:
            results = resolve_poms(client, tokens, errors)

    write_output(results, getattr(args, "OUTPUT", None))
    logger.info("Download outcomes: %s", {f"{k}/{o}": n for (k, o), n in recorder.counts().items()})

    if any(not r.get("resolved") for r in results):
        return ExitCodes.EXIT_WARNINGS.value
    return ExitCodes.SUCCESS.value


if __name__ == "__main__":
    sys.exit(main())
