from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .config import CONFIG_FILENAME, ProjectConfig, load_project_config
from .llm import LLMConfig, LLMError, LLMProvider, list_providers


def _print_error(e: LLMError) -> None:
    print(f"[agentllm] Error: {e}", file=sys.stderr)
    print(f"[agentllm] Hint: {e.hint}", file=sys.stderr)


def _load_project(args) -> ProjectConfig:
    if args.config:
        return ProjectConfig.load(Path(args.config))
    return load_project_config(Path.cwd())


def _resolve_llm(args) -> LLMConfig:
    """LLM from --llm (project table or preset name), then CLI overrides."""
    project = _load_project(args)
    if args.llm and args.llm not in project.llm_providers:
        config = LLMProvider.from_name(args.llm).config
    else:
        config = project.get_llm(args.llm)

    overrides = {}
    for name in ("model", "temperature", "max_tokens", "timeout"):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    return config.with_overrides(**overrides)


def cmd_providers(args) -> int:
    """List provider presets and whether their credentials are present."""
    for spec in list_providers():
        if spec.api_key_env:
            key_state = "set" if os.getenv(spec.api_key_env) else "missing"
            key_info = f"{spec.api_key_env} ({key_state})"
        else:
            key_info = "no key needed"
        base_url = spec.base_url or f"<set {spec.base_url_env}>"
        print(f"{spec.name:<12} {base_url:<58} {key_info}")
    return 0


def cmd_check(args) -> int:
    """Print the resolved LLM settings and verify they are usable."""
    try:
        config = _resolve_llm(args)
        provider = LLMProvider(config)
        url = provider.chat_url()
        provider.headers()
    except LLMError as e:
        _print_error(e)
        return 1

    for key, value in config.describe().items():
        print(f"{key:<18} {value}")
    print(f"{'endpoint':<18} {url}")
    print("[agentllm] Configuration OK")
    return 0


async def _ask(provider: LLMProvider, prompt: str, system: Optional[str], stream: bool) -> None:
    if stream:
        async for chunk in provider.generate_stream(prompt, system=system):
            print(chunk, end="", flush=True)
        print()
    else:
        print(await provider.generate(prompt, system=system))


def cmd_ask(args) -> int:
    """Send one prompt to the configured LLM."""
    try:
        provider = LLMProvider(_resolve_llm(args), max_retries=args.retries)
        asyncio.run(_ask(provider, args.prompt, args.system, args.stream))
    except LLMError as e:
        _print_error(e)
        return 1
    return 0


TEMPLATE_CONFIG = """# agentllm project config
default_llm = "openai"

[llm.openai]
model = "gpt-4o-mini"
api_key = "${OPENAI_API_KEY}"
temperature = 0.7

[llm.local]
model = "ollama/llama3.1"
timeout = 120

[agents.assistant]
role = "Helpful Assistant"
goal = "Answer questions clearly and accurately"
llm = "openai"
""".lstrip()

TEMPLATE_ENV = """# Copy to .env and fill in the providers you use
OPENAI_API_KEY=
# OPENAI_MODEL_NAME=gpt-4o-mini
# OPENAI_API_BASE=https://api.openai.com/v1
# ANTHROPIC_API_KEY=
# GROQ_API_KEY=
# AZURE_API_KEY=
# AZURE_API_BASE=
# AZURE_API_VERSION=
""".lstrip()


def cmd_init(args) -> int:
    target = Path(args.path).resolve()
    target.mkdir(parents=True, exist_ok=True)
    config_file = target / CONFIG_FILENAME
    if config_file.exists() and not args.force:
        print(f"[agentllm] {config_file} already exists (use --force to overwrite)")
        return 1
    config_file.write_text(TEMPLATE_CONFIG, encoding="utf-8")
    (target / ".env.example").write_text(TEMPLATE_ENV, encoding="utf-8")
    print(f"[agentllm] Initialized project at {target}")
    return 0


def _add_llm_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help=f"Path to {CONFIG_FILENAME} (default: search upwards)")
    parser.add_argument("--llm", help="Name of an [llm.<name>] table or a provider preset")
    parser.add_argument("--model", help="Override the model")
    parser.add_argument("--temperature", type=float, help="Override the temperature")
    parser.add_argument("--max-tokens", dest="max_tokens", type=int, help="Override max_tokens")
    parser.add_argument("--timeout", type=float, help="Override the timeout in seconds")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="agentllm", description="agentllm CLI")
    p.add_argument("--version", action="version", version=f"agentllm {__version__}")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    p.add_argument("--trace", action="store_true", help="Export OpenTelemetry spans")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("providers", help="List provider presets and credential status")
    sp.set_defaults(func=cmd_providers)

    sc = sub.add_parser("check", help="Show the resolved LLM configuration and validate it")
    _add_llm_args(sc)
    sc.set_defaults(func=cmd_check)

    sa = sub.add_parser("ask", help="Send a single prompt to the configured LLM")
    sa.add_argument("prompt")
    sa.add_argument("--system", help="System prompt")
    sa.add_argument("--stream", action="store_true", help="Stream the response")
    sa.add_argument("--retries", type=int, default=2, help="Retries for transient failures")
    _add_llm_args(sa)
    sa.set_defaults(func=cmd_ask)

    si = sub.add_parser("init", help=f"Create {CONFIG_FILENAME} and .env.example in PATH")
    si.add_argument("path", nargs="?", default=".")
    si.add_argument("--force", action="store_true", help="Overwrite an existing config")
    si.set_defaults(func=cmd_init)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.trace:
        from .telemetry import init_telemetry, shutdown_telemetry

        init_telemetry()
        try:
            return args.func(args)
        finally:
            shutdown_telemetry()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
