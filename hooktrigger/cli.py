"""
CLI entry point: hooktrigger trigger | config
argparse-based. A task YAML gives the base values, flags override them.
"""
from __future__ import annotations

import argparse
import json
import sys

from hooktrigger.core.errors import ConfigurationError, HookTriggerError


def _pairs(values: list[str] | None, flag: str) -> dict[str, str]:
    out: dict[str, str] = {}
    for item in values or []:
        if "=" not in item:
            raise ConfigurationError(f"{flag} expects key=value, got {item!r}")
        key, value = item.split("=", 1)
        out[key.strip()] = value
    return out


def _auth_from_args(args) -> dict | None:
    if not args.auth_type:
        return None
    auth: dict = {"type": args.auth_type}
    if args.username is not None:
        auth["username"] = args.username
    if args.password is not None:
        auth["password"] = args.password
    if args.header_name is not None:
        auth["name"] = args.header_name
    if args.header_value is not None:
        auth["value"] = args.header_value
    if args.token is not None:
        auth["token"] = args.token
    return auth


def build_task(args) -> dict:
    """Merge a task file with command-line overrides into one task mapping."""
    from hooktrigger.automation.trigger import load_task

    task = load_task(args.task) if args.task else {}
    if args.uri:
        task["uri"] = args.uri
    if args.method:
        task["method"] = args.method
    if args.body:
        try:
            task["body"] = json.loads(args.body)
        except ValueError as exc:
            raise ConfigurationError(f"--body is not valid JSON: {exc}") from exc
    if args.source:
        task["from"] = args.source
    if args.content_type:
        task["contentType"] = args.content_type
    if args.query:
        task["queryParameters"] = {**(task.get("queryParameters") or {}), **_pairs(args.query, "--query")}
    if args.header:
        task["headers"] = {**(task.get("headers") or {}), **_pairs(args.header, "--header")}
    if args.wait is not None:
        task["wait"] = args.wait
    if args.poll_frequency:
        task["pollFrequency"] = args.poll_frequency
    if args.timeout:
        task["requestTimeout"] = args.timeout
    auth = _auth_from_args(args)
    if auth is not None:
        task["authentication"] = auth
    return task


def cmd_trigger(args) -> None:
    from hooktrigger.automation.trigger import TriggerWorkflow
    from hooktrigger.config import get_config
    from hooktrigger.utils.logger import configure

    cfg = get_config()
    configure(args.log_level or cfg.log_level, cfg.log_dir, stream=sys.stderr)
    task = TriggerWorkflow.from_mapping(build_task(args), cfg)
    output = task.run(config=cfg)
    print(output.to_json())


def cmd_config(args) -> None:
    from hooktrigger.config import get_config
    cfg = get_config()
    print("\nhooktrigger Configuration")
    print("=" * 40)
    print(f"  Log level:     {cfg.log_level}")
    print(f"  Log dir:       {cfg.log_dir or '-'}")
    print(f"  Storage root:  {cfg.storage_root}")
    print(f"\n  HTTP timeout:  {cfg.http.timeout_seconds}s")
    print(f"  Redirects:     {cfg.http.follow_redirects}")
    print(f"  Verify TLS:    {cfg.http.verify_tls}")
    print(f"\n  Wait:          {cfg.defaults.wait}")
    print(f"  Poll every:    {cfg.defaults.poll_frequency.total_seconds():g}s")
    print(f"  Timeout:       {cfg.defaults.request_timeout.total_seconds():g}s")
    print(f"  Content type:  {cfg.defaults.content_type.value}")
    print()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hooktrigger",
        description="Trigger n8n workflows through their webhooks",
    )
    sub = parser.add_subparsers(dest="command")

    # trigger
    p_trig = sub.add_parser("trigger", help="Call a webhook and print the normalized result")
    p_trig.add_argument("task", nargs="?", help="Task YAML file")
    p_trig.add_argument("--uri", "--url", dest="uri", help="Webhook URL")
    p_trig.add_argument("--method", "-X", help="GET, POST, PUT, PATCH, DELETE or HEAD")
    p_trig.add_argument("--body", "-d", help="Inline JSON object body")
    p_trig.add_argument("--from", dest="source", help="File reference sent as the body")
    p_trig.add_argument("--content-type", help="JSON, XML, TEXT or BINARY (file bodies only)")
    p_trig.add_argument("--query", "-q", action="append", help="Query parameter key=value")
    p_trig.add_argument("--header", "-H", action="append", help="Header key=value")
    p_trig.add_argument("--wait", dest="wait", action="store_true", default=None,
                        help="Wait for a terminal 200 response")
    p_trig.add_argument("--no-wait", dest="wait", action="store_false", default=None,
                        help="Return right after dispatch")
    p_trig.add_argument("--poll-frequency", help="Poll interval, e.g. 2s or PT2S")
    p_trig.add_argument("--timeout", help="Overall wait budget, e.g. 5m or PT5M")
    p_trig.add_argument("--auth-type", help="BasicAuth, HeaderAuth or JWTAuth")
    p_trig.add_argument("--username")
    p_trig.add_argument("--password")
    p_trig.add_argument("--header-name")
    p_trig.add_argument("--header-value")
    p_trig.add_argument("--token")
    p_trig.add_argument("--log-level", help="Override configured log level")

    # config
    sub.add_parser("config", help="Show current configuration")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    dispatch = {
        "trigger": cmd_trigger,
        "config":  cmd_config,
    }

    if args.command not in dispatch:
        parser.print_help()
        return

    try:
        dispatch[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(130)
    except HookTriggerError as exc:
        print(f"\n[hooktrigger Error] {type(exc).__name__}: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
