import json
import sys
import textwrap
from pathlib import Path

import pytest

from codelaunch.packages.config import CommandError, LaunchSettings
from codelaunch.packages.events import EventEmitter, set_emitter
from codelaunch.packages.supervisor import spawn_process

WRANGLER_TOML = textwrap.dedent(
    """
    name = "my-worker"
    main = "src/index.ts"
    compatibility_date = "2024-09-23"
    account_id = "abc123"

    [[kv_namespaces]]
    binding = "CACHE"
    id = "kv-id"

    [[d1_databases]]
    binding = "DB"
    database_name = "prod-db"
    database_id = "d1-id"
    """
).lstrip()

# Stand-in for the assistant: records what it was given, exits as told.
STANDIN_SCRIPT = textwrap.dedent(
    """
    import json, os, sys
    context_file = os.environ.get("CONTEXT_FILE")
    record = {
        "argv": sys.argv[1:],
        "context_file": context_file,
        "has_prompt": "INITIAL_PROMPT" in os.environ,
        "prompt": os.environ.get("INITIAL_PROMPT"),
        "context": None,
    }
    if context_file and os.path.exists(context_file):
        with open(context_file, encoding="utf-8") as f:
            record["context"] = json.load(f)
    with open(os.environ["STANDIN_OUT"], "w", encoding="utf-8") as f:
        json.dump(record, f)
    sys.exit(int(os.environ.get("STANDIN_EXIT", "0")))
    """
).lstrip()


@pytest.fixture(autouse=True)
def event_log(tmp_path):
    emitter = EventEmitter(tmp_path / "events.jsonl")
    set_emitter(emitter)
    yield emitter
    set_emitter(None)


@pytest.fixture
def settings(tmp_path):
    return LaunchSettings(workspace_root=tmp_path / "workspace", check_registry=False)


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def installed_assistant(project, settings):
    """An installed wrapper package whose bin is the stand-in script."""
    package_dir = project / "node_modules" / settings.published_package
    (package_dir / "bin").mkdir(parents=True)
    (package_dir / "package.json").write_text(
        json.dumps({"name": settings.published_package, "version": "1.0.0"}), encoding="utf-8"
    )
    binary = package_dir / "bin" / settings.binary_name
    binary.write_text(STANDIN_SCRIPT, encoding="utf-8")
    return binary


def python_spawn(argv, env):
    """Spawn through the current interpreter so the stand-in script runs anywhere."""
    return spawn_process([sys.executable, *argv], env)


class RecordingRunner:
    """Command runner that records calls and can fail on a chosen command."""

    def __init__(self, fail_on=None, on_call=None):
        self.calls = []
        self.fail_on = fail_on
        self.on_call = on_call

    def __call__(self, argv, cwd=None, env=None):
        self.calls.append({"argv": list(argv), "cwd": Path(cwd) if cwd else None, "env": env})
        if self.on_call:
            self.on_call(list(argv), cwd, env)
        if self.fail_on and self.fail_on(list(argv)):
            raise CommandError(list(argv), 1)

    def commands(self):
        return [c["argv"] for c in self.calls]


@pytest.fixture
def runner():
    return RecordingRunner()
