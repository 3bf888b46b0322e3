#!/usr/bin/env python3
"""
codelaunch CLI — launch the AI assistant from a Workers project, build and release it.

Usage:
  codelaunch -p ["prompt"]                 Interactive session, prompt sent if given
  codelaunch code [args...]                Forward args verbatim to the assistant
  codelaunch context [--json]              Show the context the assistant would receive
  codelaunch build [--dev] [--snapshot] [--publish] [--tag TAG]
  codelaunch publish {patch,minor,major}
  codelaunch switch {workspace,published} [PR]
  codelaunch rename-packages
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from codelaunch.packages.config import CodelaunchError, LaunchSettings, load_settings


def cmd_launch(args, settings: LaunchSettings) -> int:
    from codelaunch.packages.supervisor import launch_opencode

    launch_opencode(args.prompt, settings=settings)
    return 0


def cmd_code(forwarded: list[str], settings: LaunchSettings) -> int:
    from codelaunch.packages.supervisor import proxy_to_opencode

    proxy_to_opencode(forwarded, settings=settings)
    return 0


def cmd_context(args, settings: LaunchSettings) -> int:
    """Print the gathered project context."""
    from codelaunch.packages.context import gather_project_context

    context = gather_project_context(args.project_root)
    if args.json:
        print(json.dumps(context.to_dict(), indent=2))
        return 0

    b = context.bindings
    print(f"Project:      {context.project_root}")
    print(f"Config files: {', '.join(context.config_files) or 'none'}")
    print(f"Worker:       {context.worker_name or 'unknown'}")
    print(f"Runtime:      {context.workers_runtime or 'unknown'}")
    print(f"Environment:  {context.environment or 'default'}")
    print(f"KV:           {len(b.kv_namespaces)}")
    print(f"D1:           {len(b.d1_databases)}")
    print(f"R2:           {len(b.r2_buckets)}")
    print(f"Durable Obj:  {len(b.durable_objects)}")
    print(f"Queues:       {len(b.queues['producers'])} producers, {len(b.queues['consumers'])} consumers")
    print(f"Vars:         {', '.join(b.vars) or 'none'}")
    print(f"Secrets:      {', '.join(b.secrets) or 'none'}")
    return 0


def cmd_build(args, settings: LaunchSettings) -> int:
    """Cross-compile the assistant and assemble its packages."""
    from codelaunch.packages.build import BuildOrchestrator, resolve_version, select_targets
    from codelaunch.packages.packaging import PackageAssembler, publish_distribution
    from codelaunch.packages.publish.coordinator import read_package_json

    base = read_package_json(settings.assistant_path / "package.json").get("version", "0.0.0")
    version = resolve_version(base, dev=args.dev, snapshot=args.snapshot)
    targets = select_targets(dev=args.dev)

    BuildOrchestrator(settings).build(targets, version)
    manifests = PackageAssembler(settings).assemble(version, targets)

    if args.publish and not args.dev:
        tag = "snapshot" if args.snapshot else (args.tag or settings.dist_tag)
        publish_distribution(settings.dist_path, manifests, tag,
                             script_runtime=settings.script_runtime)

    print("\nBuilt packages:")
    for m in manifests:
        print(f"  {m['name']}@{m['version']}")
    if args.dev:
        print(f"\nDevelopment build created in {settings.dist_path}")
    return 0


def cmd_publish(args, settings: LaunchSettings) -> int:
    from codelaunch.packages.publish import PublishCoordinator

    result = PublishCoordinator(settings).publish(args.bump_type)
    print("\nUsers can now install with:")
    print(f"  npm install -g {result.host_name}@{result.host_version}")
    print(f'  {settings.host_name} -p "Hello OpenCode!"')
    return 0


def cmd_switch(args, settings: LaunchSettings) -> int:
    from codelaunch.packages.publish import switch_dependency

    switch_dependency(settings, args.mode, args.pr)
    print("\nTest the integration with:")
    print(f'  {settings.host_name} -p "test question"')
    return 0


def cmd_rename(args, settings: LaunchSettings) -> int:
    from codelaunch.packages.publish import default_renames, rename_workspace_dependencies

    root = Path(args.root) if args.root else settings.workspace_root
    updated = rename_workspace_dependencies(root, default_renames(settings))
    print(f"\nUpdated {len(updated)} package.json files")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codelaunch",
        description="Launch the OpenCode assistant for a Workers project, and build/release it",
    )
    parser.add_argument("-p", "--prompt", nargs="?", const="", default=None,
                        help="Start an interactive assistant session, sending PROMPT first if given")
    parser.add_argument("--settings", default=None, help="Path to a codelaunch.yaml settings file")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("code", help="Forward all following arguments to the assistant")

    p = sub.add_parser("context", help="Show the project context")
    p.add_argument("--project-root", default=None, help="Project directory (default: cwd)")
    p.add_argument("--json", action="store_true", help="Output the context file contents")

    p = sub.add_parser("build", help="Build assistant executables and packages")
    p.add_argument("--dev", action="store_true", help="Build only for this machine")
    p.add_argument("--snapshot", action="store_true", help="Use a timestamped snapshot version")
    p.add_argument("--publish", action="store_true", help="Publish the built packages")
    p.add_argument("--tag", default=None, help="Dist-tag for --publish")

    p = sub.add_parser("publish", help="Bump, build, publish and commit both packages")
    p.add_argument("bump_type", nargs="?", default="patch", choices=["patch", "minor", "major"])

    p = sub.add_parser("switch", help="Switch the host between workspace and published assistant")
    p.add_argument("mode", choices=["workspace", "published"])
    p.add_argument("pr", nargs="?", default=None, help="PR number (published mode)")

    p = sub.add_parser("rename-packages", help="Rename workspace dependencies to published names")
    p.add_argument("--root", default=None, help="Directory to scan (default: workspace root)")

    return parser


def _split_code_args(argv: list[str]) -> tuple[list[str], list[str] | None]:
    """Everything after a leading ``code`` goes to the assistant untouched."""
    i = 0
    # only --settings may precede the subcommand
    while i < len(argv):
        arg = argv[i]
        if arg == "code":
            return argv[:i], argv[i + 1:]
        if arg == "--settings":
            i += 2
        elif arg.startswith("--settings="):
            i += 1
        else:
            break
    return argv, None


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    head, forwarded = _split_code_args(argv)

    parser = build_parser()
    args = parser.parse_args(head + (["code"] if forwarded is not None else []))

    try:
        settings = load_settings(args.settings)
        if forwarded is not None:
            return cmd_code(forwarded, settings)
        if args.prompt is not None:
            return cmd_launch(args, settings)

        handlers = {
            "context": cmd_context,
            "build": cmd_build,
            "publish": cmd_publish,
            "switch": cmd_switch,
            "rename-packages": cmd_rename,
        }
        handler = handlers.get(args.command)
        if handler is None:
            parser.print_help()
            return 0
        return handler(args, settings)
    except CodelaunchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
