"""
Command-Line Interface for ipa-server.

Speaks a transcription without running the HTTP server, inspects the
language table and the provider's voice inventory, or starts the server.

Usage Examples:
    # Synthesize to a file
    ipa-server --ipa "kæt" --language English --out cat.ogg

    # Check the request without calling Polly
    ipa-server --ipa "kæt" --language English --dry-run --json

    # Supported language names and their generic keys
    ipa-server --languages

    # Voice inventory as built at server startup (needs AWS credentials)
    ipa-server --voices --region eu-west-1

    # Run the HTTP server
    ipa-server --serve --host 0.0.0.0 --port 8000

Environment Variables:
    IPA_SERVER_SETTINGS: Settings file (default config/settings.yaml)
    AWS_REGION: Polly region
    IPA_SERVER_LOG_LEVEL: Log level (1-4)
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from ipa_server.core.config import Settings, load_settings_or_defaults
from ipa_server.core.errors import SpeechError
from ipa_server.core.logging import configure_logging, fail, get_logger, info, set_request_id
from ipa_server.services.speech_service import SpeechService, SynthesizeRequest
from ipa_server.services.validators import validate_ipa
from ipa_server.speech.languages import LANGUAGE_TO_CODE, generic_language_from_code, resolve_language
from ipa_server.speech.provider import get_provider


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Optional list of arguments (defaults to sys.argv).

    Returns:
        Parsed argument namespace with all CLI options.
    """
    parser = argparse.ArgumentParser(description="ipa-server CLI")

    # Synthesis input
    parser.add_argument("--ipa", help="IPA transcription to speak")
    parser.add_argument("--language", help="Language name, e.g. 'English'")
    parser.add_argument("--out", help="Output audio file (default out.ogg)")

    # Inspection
    parser.add_argument("--languages", action="store_true",
                        help="List supported language names")
    parser.add_argument("--voices", action="store_true",
                        help="Build and print the voice inventory")

    # Execution modes
    parser.add_argument("--dry-run", action="store_true",
                        help="Validate and resolve without calling the provider")
    parser.add_argument("--json", action="store_true",
                        help="Print JSON output")
    parser.add_argument("--region", help="Polly region override")

    # Server
    parser.add_argument("--serve", action="store_true", help="Run the HTTP server")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (with --serve)")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (with --serve)")

    return parser.parse_args(argv)


def _with_region(settings: Settings, region: Optional[str]) -> Settings:
    """Copy of settings with provider.region replaced."""
    if not region:
        return settings
    raw = dict(settings.raw)
    raw["provider"] = {**(raw.get("provider") or {}), "region": region}
    return Settings(raw=raw)


def _emit(payload: dict, as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(payload)


def _print_languages(as_json: bool) -> None:
    if as_json:
        rows = {name: generic_language_from_code(code) for name, code in sorted(LANGUAGE_TO_CODE.items())}
        print(json.dumps(rows, ensure_ascii=False))
        return
    for name, code in sorted(LANGUAGE_TO_CODE.items()):
        print(f"{name:<18} {code:<8} {generic_language_from_code(code)}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 for rejected requests or provider
        failures, 2 for missing arguments).
    """
    args = _parse_args(argv)

    if args.languages:
        _print_languages(args.json)
        return 0

    configure_logging()
    log = get_logger("ipa-server.cli")
    set_request_id(str(uuid4())[:12])

    settings = _with_region(load_settings_or_defaults(), args.region)

    if args.serve:
        import uvicorn
        from ipa_server.main import create_app

        info(log, "serve", host=args.host, port=args.port, region=settings.region)
        uvicorn.run(create_app(settings=settings), host=args.host, port=args.port)
        return 0

    config = settings.get_service_config()

    if args.dry_run:
        if args.ipa is None or args.language is None:
            print("Provide --ipa and --language.")
            return 2
        try:
            ipa = validate_ipa(args.ipa, config.ipa.min_length, config.ipa.max_length)
            key = resolve_language(args.language)
        except SpeechError as e:
            _emit(e.to_dict(), args.json)
            return 1
        _emit({"ok": True, "dry_run": True, "ipa": ipa, "language": args.language, "key": key}, args.json)
        print("DRY_RUN_OK")
        return 0

    try:
        service = SpeechService.from_settings(settings, get_provider(config.provider))
    except SpeechError as e:
        fail(log, "startup_failed", error=e.message)
        _emit(e.to_dict(), args.json)
        return 1

    if args.voices:
        _emit({"ok": True, "region": settings.region, "voices": service.inventory.as_dict()}, args.json)
        return 0

    if args.ipa is None or args.language is None:
        print("Provide --ipa and --language, or one of --languages, --voices, --serve.")
        return 2

    out_path = Path(args.out or "out.ogg")
    try:
        audio = service.synthesize(SynthesizeRequest(ipa=args.ipa, language=args.language))
    except SpeechError as e:
        _emit(e.to_dict(), args.json)
        return 1

    data = audio.read_all()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(data)
    info(log, "written", out=str(out_path), bytes=len(data), speaker=audio.voice_id)

    _emit({"ok": True, "out": str(out_path), "bytes": len(data), "speaker": audio.voice_id}, args.json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
